"""
Metria Backend - Dataset Storage
In-memory dataset management with TTL expiration
"""

import os
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException

from engine import AIInsight, Dataset

DATASET_TTL_HOURS = float(os.getenv("DATASET_TTL_HOURS", "1"))
MAX_DATASETS = int(os.getenv("MAX_DATASETS", "10"))


class StoredDataset:
    """Container for an ingested dataset with access metadata"""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset
        self.created_at = datetime.now()
        self.touch()

    @property
    def id(self) -> str:
        return self.dataset.id

    def touch(self):
        """Update last accessed time"""
        self.last_accessed = datetime.now()

    def is_expired(self, ttl_hours: float = DATASET_TTL_HOURS) -> bool:
        """Check if dataset has expired"""
        return datetime.now() - self.last_accessed > timedelta(hours=ttl_hours)


# Global dataset storage, insertion ordered
DATASETS: dict[str, StoredDataset] = {}


def cleanup_expired():
    """Remove expired datasets from memory"""
    expired = [k for k, v in DATASETS.items() if v.is_expired()]
    for k in expired:
        del DATASETS[k]


def get_dataset(dataset_id: str) -> Dataset:
    """Retrieve dataset by ID, with expiration check"""
    cleanup_expired()
    if dataset_id not in DATASETS:
        raise HTTPException(status_code=404, detail="Dataset not found or expired. Please re-import.")
    stored = DATASETS[dataset_id]
    stored.touch()
    return stored.dataset


def get_datasets(dataset_ids: list[str]) -> list[Dataset]:
    return [get_dataset(i) for i in dataset_ids]


def list_datasets() -> list[Dataset]:
    cleanup_expired()
    return [v.dataset for v in DATASETS.values()]


def store_dataset(dataset: Dataset) -> str:
    """Store dataset and return its ID"""
    cleanup_expired()

    # Evict oldest if at capacity
    if dataset.id not in DATASETS and len(DATASETS) >= MAX_DATASETS:
        oldest_id = min(DATASETS.keys(), key=lambda k: DATASETS[k].last_accessed)
        del DATASETS[oldest_id]

    DATASETS[dataset.id] = StoredDataset(dataset)
    return dataset.id


def remove_dataset(dataset_id: str) -> None:
    if dataset_id not in DATASETS:
        raise HTTPException(status_code=404, detail="Dataset not found or expired.")
    del DATASETS[dataset_id]


def attach_insight(dataset_id: str, insight: Optional[AIInsight]) -> Dataset:
    """Set aiStorage, the only field that changes after ingestion"""
    stored = DATASETS.get(dataset_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Dataset not found or expired.")
    stored.dataset = stored.dataset.model_copy(update={"ai_storage": insight})
    stored.touch()
    return stored.dataset


def next_position() -> int:
    """Palette position for the next imported dataset"""
    cleanup_expired()
    return len(DATASETS)
