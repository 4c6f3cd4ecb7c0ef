"""Dataset ingestion, point records, aggregation and auxiliary overlays."""

from mapengine.data.aggregate import compute_aggregates
from mapengine.data.datasets import DatasetSpec, food_dataset, heat_dataset, waste_dataset
from mapengine.data.ingest import DatasetIngestor
from mapengine.data.records import AggregateSnapshot, PointRecord
from mapengine.data.state import DashboardState

__all__ = [
    "AggregateSnapshot",
    "DashboardState",
    "DatasetIngestor",
    "DatasetSpec",
    "PointRecord",
    "compute_aggregates",
    "food_dataset",
    "heat_dataset",
    "waste_dataset",
]
