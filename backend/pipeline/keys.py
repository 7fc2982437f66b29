"""Stability keys separating "rebuild the layout" from "restyle only"."""

from collections.abc import Iterable

from core.models import FilterCriteria


def topology_key(entity_ids: Iterable[str], endpoint_pairs: Iterable[tuple[str, str]]) -> str:
    """Key over sorted entity ids and sorted source-target pairs."""
    ids = ",".join(sorted(entity_ids))
    pairs = ",".join(sorted(f"{s}-{t}" for s, t in endpoint_pairs))
    return f"{ids}|{pairs}"


def filter_key(criteria: FilterCriteria) -> str:
    """Canonical string form of filter criteria; set fields are order-independent."""
    categories = ",".join(sorted(str(c) for c in criteria.categories))
    owners = ",".join(sorted(criteria.owners))
    return (
        f"{categories}|{criteria.min_flow:g}|{owners}|{criteria.v2g}"
        f"|{criteria.capacity_min:g}|{criteria.capacity_max:g}"
    )
