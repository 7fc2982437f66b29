"""Dataset loading, sample data and fixtures."""

from data.campus_layout import (
    COMPASS_ORIENTATION_DEG,
    PINNED_COORDINATES,
    SITE_PLAN_SCALE,
)
from data.loader import DatasetLoadError, load_dataset, load_dataset_file, parse_dataset
from data.sample_community import SAMPLE_COMMUNITY, create_minimal_community, create_sample_community

__all__ = [
    "COMPASS_ORIENTATION_DEG",
    "PINNED_COORDINATES",
    "SAMPLE_COMMUNITY",
    "SITE_PLAN_SCALE",
    "DatasetLoadError",
    "create_minimal_community",
    "create_sample_community",
    "load_dataset",
    "load_dataset_file",
    "parse_dataset",
]
