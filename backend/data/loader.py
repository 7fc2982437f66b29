"""Community dataset loading from a JSON document (file path or HTTP URL)."""

import dataclasses
import json
import logging
import math
from pathlib import Path
from typing import Any

import aiohttp

from core.categories import parse_category
from core.models import (
    Battery,
    Building,
    ChargePoint,
    CommunityDataset,
    Connection,
    Entity,
    EntityCategory,
    GridConnection,
    SolarArray,
)

logger = logging.getLogger(__name__)

_VARIANTS: dict[EntityCategory, type[Entity]] = {
    EntityCategory.BUILDING: Building,
    EntityCategory.SOLAR: SolarArray,
    EntityCategory.GRID: GridConnection,
    EntityCategory.BATTERY: Battery,
    EntityCategory.CHARGE_POINT: ChargePoint,
}

# JSON keys consumed by the loader itself rather than stored in ``extra``
_RESERVED_KEYS = {"id", "type", "category", "x", "y", "fx", "fy", "VALID_OWNERS", "valid_owners"}


class DatasetLoadError(RuntimeError):
    """The community dataset could not be fetched or parsed."""


def _coerce(field_type: Any, value: Any) -> Any:
    if value is None:
        return None
    type_text = str(field_type)
    if "bool" in type_text:
        return bool(value)
    if "int" in type_text or "float" in type_text:
        # NaN and Infinity are valid JSON to the json module
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return None
        return float(value) if "float" in type_text else int(value)
    return str(value)


def parse_entity(raw: dict[str, Any]) -> Entity | None:
    """Build the entity variant for one raw node; returns None for unusable nodes."""
    entity_id = raw.get("id")
    if entity_id is None:
        logger.debug("Skipping node without id: %r", raw)
        return None
    category = parse_category(str(raw.get("category", raw.get("type", ""))))
    if category is None:
        logger.warning("Skipping node %s with unknown category %r", entity_id, raw.get("type"))
        return None

    variant = _VARIANTS[category]
    known = {f.name: f.type for f in dataclasses.fields(variant) if f.name not in ("id", "extra")}
    kwargs: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in raw.items():
        if key in _RESERVED_KEYS:
            continue
        if key in known:
            kwargs[key] = _coerce(known[key], value)
        else:
            extra[key] = value
    if variant is ChargePoint and kwargs.get("is_v2g") is None:
        kwargs.pop("is_v2g", None)
    return variant(id=str(entity_id), extra=extra, **kwargs)


def _endpoint_id(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("id")
    if value is None:
        return None
    return str(value)


def parse_connection(raw: dict[str, Any]) -> Connection | None:
    source = _endpoint_id(raw.get("source"))
    target = _endpoint_id(raw.get("target"))
    if source is None or target is None:
        logger.debug("Skipping link without endpoints: %r", raw)
        return None
    return Connection(source=source, target=target, flow=raw.get("flow", []))


def parse_dataset(document: Any) -> CommunityDataset:
    """Parse a raw JSON document into a dataset.

    Raises DatasetLoadError when the document has no usable node list.
    """
    if not isinstance(document, dict):
        raise DatasetLoadError("Dataset document must be a JSON object")
    raw_nodes = document.get("nodes", document.get("entities"))
    raw_links = document.get("links", document.get("connections", []))
    if not isinstance(raw_nodes, list):
        raise DatasetLoadError("Dataset is missing a 'nodes' array")
    if not isinstance(raw_links, list):
        raise DatasetLoadError("Dataset 'links' must be an array")

    entities: list[Entity] = []
    seen: set[str] = set()
    valid_owners: set[str] = set()
    for raw in raw_nodes:
        if not isinstance(raw, dict):
            continue
        owners = raw.get("VALID_OWNERS", raw.get("valid_owners"))
        if isinstance(owners, list):
            valid_owners.update(str(o) for o in owners)
        entity = parse_entity(raw)
        if entity is None:
            continue
        if entity.id in seen:
            logger.warning("Duplicate entity id %s, keeping the first", entity.id)
            continue
        seen.add(entity.id)
        entities.append(entity)

    connections = [c for c in (parse_connection(r) for r in raw_links if isinstance(r, dict)) if c is not None]

    kpis = document.get("kpis", document.get("community_kpis"))
    dataset = CommunityDataset(
        entities=entities,
        connections=connections,
        community_kpis=kpis if isinstance(kpis, dict) else None,
        valid_owners=sorted(valid_owners),
    )
    logger.info("Loaded dataset: %d entities, %d connections", len(entities), len(connections))
    return dataset


def load_dataset_file(path: Path) -> CommunityDataset:
    try:
        with path.open(encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, ValueError) as exc:
        raise DatasetLoadError(f"Could not read dataset {path}: {exc}") from exc
    return parse_dataset(document)


async def fetch_dataset(url: str, timeout_s: float = 10.0) -> CommunityDataset:
    """Fetch the dataset once over HTTP."""
    timeout = aiohttp.ClientTimeout(total=timeout_s)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session, session.get(url) as response:
            response.raise_for_status()
            document = await response.json(content_type=None)
    except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
        raise DatasetLoadError(f"Could not fetch dataset from {url}: {exc}") from exc
    return parse_dataset(document)


async def load_dataset(source: str) -> CommunityDataset:
    """Load from an ``http(s)://`` URL or a filesystem path."""
    if source.startswith(("http://", "https://")):
        return await fetch_dataset(source)
    return load_dataset_file(Path(source))
