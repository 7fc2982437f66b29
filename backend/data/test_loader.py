"""Dataset loader tests: parsing, malformed values and unreadable files."""

import pytest

from core.models import ChargePoint, SolarArray
from data.loader import DatasetLoadError, load_dataset_file, parse_dataset

# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def test_pv_alias_and_dangling_links() -> None:
    dataset = parse_dataset(
        {
            "nodes": [{"id": "pv1", "type": "pv", "installed_capacity": 12}],
            "links": [{"source": "pv1"}, {"source": "pv1", "target": "b1", "flow": [1.0]}],
        }
    )
    assert isinstance(dataset.entities[0], SolarArray)
    assert dataset.entities[0].installed_capacity == 12.0
    assert len(dataset.connections) == 1


def test_non_finite_numbers_read_as_missing(tmp_path) -> None:
    path = tmp_path / "community.json"
    path.write_text(
        '{"nodes": ['
        '{"id": "cp1", "type": "charge_point", "total_connected_evs": NaN, "capacity": Infinity},'
        '{"id": "pv1", "type": "solar", "installed_capacity": -Infinity}'
        "]}"
    )
    dataset = load_dataset_file(path)
    charge_point, solar = dataset.entities
    assert isinstance(charge_point, ChargePoint)
    assert charge_point.total_connected_evs is None
    assert charge_point.capacity is None
    assert solar.installed_capacity is None


def test_rejects_document_without_nodes() -> None:
    with pytest.raises(DatasetLoadError):
        parse_dataset({"links": []})


# -----------------------------------------------------------------------------
# Unreadable files
# -----------------------------------------------------------------------------


def test_missing_file(tmp_path) -> None:
    with pytest.raises(DatasetLoadError):
        load_dataset_file(tmp_path / "missing.json")


def test_invalid_utf8(tmp_path) -> None:
    path = tmp_path / "community.json"
    path.write_bytes(b"\xff")
    with pytest.raises(DatasetLoadError):
        load_dataset_file(path)


def test_invalid_json(tmp_path) -> None:
    path = tmp_path / "community.json"
    path.write_text("{nodes")
    with pytest.raises(DatasetLoadError):
        load_dataset_file(path)
