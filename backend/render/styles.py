"""Flow styling: width, opacity, color, direction and speed of a connection at one hour."""

import colorsys
import math
from dataclasses import dataclass
from enum import StrEnum

from core.categories import CATEGORY_TRAITS, NEUTRAL_COLOR
from core.models import EntityCategory


@dataclass(frozen=True)
class FlowStyle:
    """Connection styling tunables."""

    # --- Width (px) ---
    min_width: float = 3.0
    max_width: float = 12.0
    zero_width: float = 1.0  # background line for idle connections

    # --- Opacity ---
    min_opacity: float = 0.4
    max_opacity: float = 1.0
    zero_opacity: float = 0.15

    # --- Normalisation ---
    max_flow: float = 20.0  # kWh mapped to max width/opacity

    # --- Animation speed thresholds (kWh) ---
    fast_threshold: float = 3.0
    slow_threshold: float = 1.0

    # --- Saturation ramp for near-zero flow ---
    min_saturation: float = 0.25  # fraction of the category color's saturation kept at ~0 flow
    full_saturation_flow: float = 1.0  # kWh at which the color is fully saturated

    # --- Hover ---
    hover_scale: float = 1.8
    hover_min_width: float = 8.0

    # --- Transitions ---
    restyle_s: float = 0.3


DEFAULT_FLOW_STYLE = FlowStyle()


class Direction(StrEnum):
    FORWARD = "forward"
    REVERSE = "reverse"
    IDLE = "idle"


class Speed(StrEnum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


# ---------------------------------------------------------------------------
# Scalar mappings
# ---------------------------------------------------------------------------


def normalized_flow(magnitude: float, style: FlowStyle = DEFAULT_FLOW_STYLE) -> float:
    return min(abs(magnitude) / style.max_flow, 1.0)


def link_width(magnitude: float, style: FlowStyle = DEFAULT_FLOW_STYLE) -> float:
    """Non-decreasing in |flow|: idle lines get ``zero_width``, any flow at least ``min_width``."""
    if magnitude == 0:
        return style.zero_width
    return style.min_width + normalized_flow(magnitude, style) * (style.max_width - style.min_width)


def link_opacity(magnitude: float, style: FlowStyle = DEFAULT_FLOW_STYLE) -> float:
    if magnitude == 0:
        return style.zero_opacity
    return style.min_opacity + normalized_flow(magnitude, style) * (style.max_opacity - style.min_opacity)


def hover_width(width: float, style: FlowStyle = DEFAULT_FLOW_STYLE) -> float:
    return max(style.hover_min_width, width * style.hover_scale)


def flow_direction(value: float) -> Direction:
    if value > 0:
        return Direction.FORWARD
    if value < 0:
        return Direction.REVERSE
    return Direction.IDLE


def speed_class(magnitude: float, style: FlowStyle = DEFAULT_FLOW_STYLE) -> Speed:
    if magnitude > style.fast_threshold:
        return Speed.FAST
    if magnitude > style.slow_threshold:
        return Speed.NORMAL
    return Speed.SLOW


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


def _hex_to_rgb(color: str) -> tuple[float, float, float]:
    value = color.lstrip("#")
    return (int(value[0:2], 16) / 255, int(value[2:4], 16) / 255, int(value[4:6], 16) / 255)


def _rgb_to_hex(r: float, g: float, b: float) -> str:
    return "#" + "".join(f"{round(min(max(c, 0.0), 1.0) * 255):02X}" for c in (r, g, b))


def desaturate(color: str, factor: float) -> str:
    """Scale the HLS saturation of ``color`` by ``factor`` in [0, 1]."""
    h, l, s = colorsys.rgb_to_hls(*_hex_to_rgb(color))
    return _rgb_to_hex(*colorsys.hls_to_rgb(h, l, s * min(max(factor, 0.0), 1.0)))


def brighten(color: str, k: float = 0.3) -> str:
    """Multiply every channel by (1 / 0.7) ** k."""
    scale = (1 / 0.7) ** k
    r, g, b = _hex_to_rgb(color)
    return _rgb_to_hex(r * scale, g * scale, b * scale)


def saturation_factor(magnitude: float, style: FlowStyle = DEFAULT_FLOW_STYLE) -> float:
    ramp = min(abs(magnitude) / style.full_saturation_flow, 1.0)
    return style.min_saturation + ramp * (1 - style.min_saturation)


def link_color(source_category: EntityCategory | None, magnitude: float, style: FlowStyle = DEFAULT_FLOW_STYLE) -> str:
    """Flow color of the source category, washed out toward zero flow."""
    if magnitude == 0 or source_category is None:
        return NEUTRAL_COLOR
    return desaturate(CATEGORY_TRAITS[source_category].flow_color, saturation_factor(magnitude, style))


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


def arc_path(sx: float, sy: float, tx: float, ty: float) -> str:
    """SVG arc from source to target with radius equal to their distance."""
    dr = math.hypot(tx - sx, ty - sy)
    return f"M{sx:.2f},{sy:.2f}A{dr:.2f},{dr:.2f} 0 0,1 {tx:.2f},{ty:.2f}"


def distance_to_segment(px: float, py: float, ax: float, ay: float, bx: float, by: float) -> float:
    dx, dy = bx - ax, by - ay
    length2 = dx * dx + dy * dy
    if length2 == 0:
        return math.hypot(px - ax, py - ay)
    t = min(max(((px - ax) * dx + (py - ay) * dy) / length2, 0.0), 1.0)
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))
