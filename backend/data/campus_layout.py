"""Pinned campus coordinates for entities drawn on top of the site plan.

Coordinates are in the site-plan image's own pixel space. The whole table is
scaled by ``SITE_PLAN_SCALE`` and rotated by ``COMPASS_ORIENTATION_DEG`` around
the scaled image centre before use (see ``simulation.positions``).
"""

SITE_PLAN_SCALE = 2.0
COMPASS_ORIENTATION_DEG = -90.0  # negative = counter-clockwise

SITE_PLAN_WIDTH = 565.752
SITE_PLAN_HEIGHT = 1276.608

PINNED_COORDINATES: dict[str, tuple[float, float]] = {
    "SB1": (184.397, 717.074),
    "Edit": (319.370, 759.348),
    "HA": (374.170, 593.310),
    "HB": (378.120, 675.705),
    "HC": (381.956, 762.279),
    "Idelara": (1101.542, 64.525),
    "Vasa 1": (266.653, 115.389),
    "Vasa 2-3": (322.973, 109.4473),
    "Vasa 12": (379.136, 157.676),
    "Vasa 8": (311.158, 205.436),
    "Vasa 10": (391.937, 199.993),
    "Vasa 5": (284.958, 244.593),
    "Vasa 9": (339.721, 237.915),
    "CSB Chabo": (346.427, 301.608),
    "MC2": (234.252, 347.819),
    "Kemi": (352.798, 405.317),
    "Emils kårhus": (405.376, 407.888),
    "Nya Matte": (302.303, 499.262),
    "bibliotek": (402.648, 484.516),
    "Kårhus entré": (114.806, 562.152),
    "Maskinteknik": (319.243, 651.008),
    "Lokalkontor": (287.304, 586.620),
    "Fysik origo": (227.567, 431.054),
    "Kårhus": (120.991, 601.520),
    "SB2": (185.481, 768.882),
    "SB3": (191.425, 888.985),
    "AWL": (195.544, 962.640),
    "JSP": (188.056, 1016.338),
    "Teknikparken": (130.388, 1081.455),
    "Elkraftteknik": (341.186, 819.325),
    "Vasa 13": (235.464, 172.473),
    "Gamla matte": (415.010, 1086.740),
    "Idélära": (283.060, 822.095),
    "IT": (140.424, 1157.231),
    "CA-Huset": (136.279, 463.660),
    "Reaktorfysik": (244.771, 411.121),
    "CSB Gibraltarvallen guesthouse": (427.087, 559.410),
    "Vasa 4": (247.271, 258.770),
    "Vasa 7": (245.196, 236.308),
    "Vasa 15": (381.065, 334.557),
    "PV-Plant": (195.531, 1079.886),
}

