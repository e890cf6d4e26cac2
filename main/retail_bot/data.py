from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Protocol, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from .schemas import CustomerRecord, InventoryRecord, RetailDataset, SaleRecord, StoreRecord


logger = logging.getLogger(__name__)

TABULAR_EXTENSIONS = (".csv", ".xlsx", ".xls")

# Collection name -> record type, in the order collections are loaded.
COLLECTIONS: dict[str, type[BaseModel]] = {
    "sales": SaleRecord,
    "inventory": InventoryRecord,
    "customers": CustomerRecord,
    "stores": StoreRecord,
}
REQUIRED_COLLECTIONS = ("sales", "inventory")

RecordT = TypeVar("RecordT", bound=BaseModel)


class DataUnavailableError(RuntimeError):
    """The backing dataset could not be read or parsed."""


class DataSource(Protocol):
    def load(self) -> RetailDataset:
        ...


def validate_rows(rows: Iterable[Any], record_type: type[RecordT], collection: str) -> list[RecordT]:
    """Validate raw rows into records, skipping (and logging) malformed ones."""
    records: list[RecordT] = []
    skipped = 0
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            skipped += 1
            logger.warning("Skipping %s row %d: expected an object, got %s", collection, index, type(row).__name__)
            continue
        try:
            records.append(record_type.model_validate(row))
        except ValidationError as exc:
            skipped += 1
            logger.warning("Skipping malformed %s row %d: %s", collection, index, exc.errors(include_url=False))
    if skipped:
        logger.info("Loaded %d %s rows (%d skipped)", len(records), collection, skipped)
    return records


def build_dataset(raw: dict[str, Any]) -> RetailDataset:
    missing = [name for name in REQUIRED_COLLECTIONS if name not in raw]
    if missing:
        raise DataUnavailableError(f"Dataset is missing required collections: {', '.join(missing)}")

    collections: dict[str, list[Any]] = {}
    for name, record_type in COLLECTIONS.items():
        rows = raw.get(name)
        if rows is None:
            rows = []
        if not isinstance(rows, list):
            raise DataUnavailableError(f"Collection '{name}' must be a list, got {type(rows).__name__}")
        collections[name] = validate_rows(rows, record_type, name)
    return RetailDataset(**collections)


class JsonDataSource:
    """Reads `{sales, inventory, customers, stores}` from one JSON document."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> RetailDataset:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error loading retail data from %s: %s", self.path, exc)
            raise DataUnavailableError(f"Could not read {self.path}") from exc
        if not isinstance(raw, dict):
            raise DataUnavailableError(f"{self.path} must contain a JSON object")
        return build_dataset(raw)


class TabularDataSource:
    """Reads one CSV/Excel file per collection (`sales.csv`, `inventory.xlsx`, ...) from a folder."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _find(self, name: str) -> Path | None:
        for suffix in TABULAR_EXTENSIONS:
            candidate = self.directory / f"{name}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _read_frame(path: Path) -> pd.DataFrame:
        if path.suffix.lower() == ".csv":
            return pd.read_csv(path)
        return pd.read_excel(path)

    def load(self) -> RetailDataset:
        if not self.directory.is_dir():
            raise DataUnavailableError(f"Data directory does not exist: {self.directory}")

        raw: dict[str, Any] = {}
        for name in COLLECTIONS:
            path = self._find(name)
            if path is None:
                continue
            try:
                frame = self._read_frame(path)
            except (OSError, ValueError) as exc:
                logger.error("Error loading %s from %s: %s", name, path, exc)
                raise DataUnavailableError(f"Could not read {path}") from exc
            frame.columns = [str(col).strip().lower() for col in frame.columns]
            # NaN cells become missing fields so optional columns validate cleanly.
            raw[name] = [
                {key: value for key, value in row.items() if not pd.isna(value)}
                for row in frame.to_dict("records")
            ]
        return build_dataset(raw)


class InMemoryDataSource:
    def __init__(self, dataset: RetailDataset):
        self.dataset = dataset

    def load(self) -> RetailDataset:
        return self.dataset


def open_data_source(path: str | Path) -> DataSource:
    """Pick a data source implementation for a file or folder path."""
    target = Path(path)
    if target.is_dir():
        return TabularDataSource(target)
    if target.suffix.lower() in TABULAR_EXTENSIONS:
        return TabularDataSource(target.parent)
    return JsonDataSource(target)
