"""Vectorised force terms of the layout simulation.

Each force adds to the velocity array in place. Positions are only moved by
the integration step in ``engine``. Pinned entities receive velocity like any
other entity, but integration discards it, so they still push and pull on
their neighbours without moving themselves.
"""

import numpy as np
from scipy.spatial import cKDTree


def link_parameters(n: int, sources: np.ndarray, targets: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Per-link strength ``1 / min(degree)`` and the bias toward the lower-degree end."""
    degree = np.bincount(np.concatenate([sources, targets]), minlength=n).astype(float)
    deg_s = degree[sources]
    deg_t = degree[targets]
    strength = 1.0 / np.minimum(deg_s, deg_t)
    bias = deg_s / (deg_s + deg_t)
    return strength, bias


def apply_links(
    pos: np.ndarray,
    vel: np.ndarray,
    sources: np.ndarray,
    targets: np.ndarray,
    strength: np.ndarray,
    bias: np.ndarray,
    distance: float,
    alpha: float,
) -> None:
    """Spring attraction toward ``distance`` along every link."""
    if len(sources) == 0:
        return
    delta = (pos[targets] + vel[targets]) - (pos[sources] + vel[sources])
    length = np.hypot(delta[:, 0], delta[:, 1])
    valid = length > 0
    factor = np.zeros_like(length)
    factor[valid] = (length[valid] - distance) / length[valid] * alpha * strength[valid]
    delta *= factor[:, None]
    np.add.at(vel, targets, -delta * bias[:, None])
    np.add.at(vel, sources, delta * (1 - bias)[:, None])


def apply_many_body(
    pos: np.ndarray,
    vel: np.ndarray,
    strength: float,
    alpha: float,
    distance_min: float,
) -> None:
    """Exact pairwise charge: negative strength repels, falling off with 1 / distance."""
    n = len(pos)
    if n < 2:
        return
    diff = pos[None, :, :] - pos[:, None, :]  # diff[i, j] = pos[j] - pos[i]
    dist2 = np.einsum("ijk,ijk->ij", diff, diff)
    min2 = distance_min * distance_min
    dist2 = np.where(dist2 < min2, np.sqrt(min2 * dist2), dist2)
    np.fill_diagonal(dist2, np.inf)
    dist2[dist2 == 0] = np.inf
    vel += np.sum(diff * (strength * alpha / dist2)[:, :, None], axis=1)


def apply_centering(
    pos: np.ndarray,
    vel: np.ndarray,
    center: tuple[float, float],
    strength: float,
    alpha: float,
) -> None:
    """Independent x and y pulls toward the viewport midpoint."""
    vel += (np.asarray(center) - pos) * strength * alpha


def apply_collisions(
    pos: np.ndarray,
    vel: np.ndarray,
    radius: float,
    strength: float,
) -> int:
    """Push overlapping entities apart so centres stay ``2 * radius`` apart.

    Candidate pairs come from a k-d tree over the predicted positions. Equal
    radii split the correction evenly. Returns the number of overlapping pairs.
    """
    if len(pos) < 2:
        return 0
    predicted = pos + vel
    clearance = 2 * radius
    pairs = cKDTree(predicted).query_pairs(clearance, output_type="ndarray")
    if len(pairs) == 0:
        return 0
    i, j = pairs[:, 0], pairs[:, 1]
    delta = predicted[i] - predicted[j]
    length = np.hypot(delta[:, 0], delta[:, 1])
    overlap = (length < clearance) & (length > 0)
    if not overlap.any():
        return 0
    i, j, delta, length = i[overlap], j[overlap], delta[overlap], length[overlap]
    push = delta * ((clearance - length) / length * strength * 0.5)[:, None]
    np.add.at(vel, i, push)
    np.add.at(vel, j, -push)
    return int(overlap.sum())
