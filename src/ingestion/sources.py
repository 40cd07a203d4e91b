"""
Snapshot Data Sources

Read access to the five record collections the delivery reports use:
orders, order items, products, category translations and reviews.

Every source returns a `Snapshot` whose frames share one canonical schema,
so the analytics layer never has to care where the data came from:
- CsvDataSource reads the Olist CSV export
- DatabaseDataSource reads the relational store through SQLAlchemy
- InMemoryDataSource wraps frames or record lists already in memory
"""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import polars as pl
import structlog
from sqlalchemy import select
from sqlalchemy.engine import Engine

from src.analytics.exceptions import DataSourceError
from src.config import get_settings
from src.database.connection import get_db, get_engine
from src.database.models import TABLE_MODELS

logger = structlog.get_logger(__name__)


# Olist export first, then ISO and fractional-second variants (polars, pandas, Postgres dumps)
DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S%.f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S%.f",
    "%Y-%m-%d",
]
NULL_VALUES = ["", "NULL", "null", "None", "NA", "N/A"]

# Canonical schema for every collection in a snapshot
SCHEMAS: Dict[str, Dict[str, pl.DataType]] = {
    "orders": {
        "order_id": pl.Utf8,
        "order_status": pl.Utf8,
        "order_estimated_delivery_date": pl.Datetime("us"),
        "order_delivered_customer_date": pl.Datetime("us"),
    },
    "order_items": {
        "order_id": pl.Utf8,
        "order_item_id": pl.Int64,
        "product_id": pl.Utf8,
    },
    "products": {
        "product_id": pl.Utf8,
        "product_category_name": pl.Utf8,
    },
    "category_translations": {
        "product_category_name": pl.Utf8,
        "product_category_name_english": pl.Utf8,
    },
    "reviews": {
        "review_id": pl.Utf8,
        "order_id": pl.Utf8,
        "review_score": pl.Int64,
    },
}

# File names of the public Olist export
OLIST_FILE_NAMES: Dict[str, str] = {
    "orders": "olist_orders_dataset.csv",
    "order_items": "olist_order_items_dataset.csv",
    "products": "olist_products_dataset.csv",
    "category_translations": "product_category_name_translation.csv",
    "reviews": "olist_order_reviews_dataset.csv",
}

FrameLike = Union[pl.DataFrame, Sequence[Mapping[str, Any]], None]


def empty_frame(name: str) -> pl.DataFrame:
    """Zero-row frame with the canonical schema of a collection"""
    return pl.DataFrame(schema=SCHEMAS[name])


def _parse_datetime(column: str) -> pl.Expr:
    col = pl.col(column)
    return pl.coalesce(
        [col.str.strptime(pl.Datetime("us"), fmt, strict=False) for fmt in DATETIME_FORMATS]
    ).alias(column)


def normalize_frame(name: str, df: pl.DataFrame) -> pl.DataFrame:
    """
    Select and cast the columns of a collection to its canonical schema.

    String dates are parsed with the Olist format and its ISO and
    fractional-second variants. Values that fail to parse or cast become null
    rather than raising; unparsable dates are logged with their count.

    Raises:
        DataSourceError: If the collection is unknown or a column is missing
    """
    if name not in SCHEMAS:
        raise DataSourceError(f"Unknown collection: {name}")

    schema = SCHEMAS[name]
    missing = [c for c in schema if c not in df.columns]
    if missing:
        raise DataSourceError(f"Collection '{name}' is missing columns: {missing}")

    exprs = []
    parsed = []
    for column, dtype in schema.items():
        current = df.schema[column]
        if isinstance(dtype, pl.Datetime) and current == pl.Utf8:
            exprs.append(_parse_datetime(column))
            parsed.append(column)
        elif current == dtype:
            exprs.append(pl.col(column))
        else:
            exprs.append(pl.col(column).cast(dtype, strict=False))

    result = df.select(exprs)

    for column in parsed:
        failed = df[column].is_not_null() & result[column].is_null()
        if failed.any():
            logger.warning(
                "Unparsable dates set to null",
                collection=name,
                column=column,
                count=int(failed.sum()),
                example=df[column].filter(failed)[0],
            )

    return result


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Immutable bundle of the five normalized record collections"""
    orders: pl.DataFrame
    order_items: pl.DataFrame
    products: pl.DataFrame
    category_translations: pl.DataFrame
    reviews: pl.DataFrame

    def frame(self, name: str) -> pl.DataFrame:
        """Get a collection by name"""
        if name not in SCHEMAS:
            raise KeyError(name)
        return getattr(self, name)

    @property
    def row_counts(self) -> Dict[str, int]:
        return {name: self.frame(name).height for name in SCHEMAS}

    @cached_property
    def fingerprint(self) -> str:
        """Content hash; changes whenever any collection's rows change"""
        digest = hashlib.sha256()
        for name in SCHEMAS:
            df = self.frame(name)
            row_hash = int(df.hash_rows(seed=0).sum()) if df.height else 0
            digest.update(f"{name}:{df.height}:{row_hash};".encode())
        return digest.hexdigest()


class DataSource(ABC):
    """Provides a read-only snapshot of the record collections"""

    name: str = "source"

    @abstractmethod
    def _read(self, collection: str) -> pl.DataFrame:
        """Read one raw collection"""

    def load(self) -> Snapshot:
        """
        Read and normalize every collection.

        Returns:
            Snapshot with frames in the canonical schema
        """
        frames = {}
        for collection in SCHEMAS:
            frames[collection] = normalize_frame(collection, self._read(collection))

        snapshot = Snapshot(**frames)
        logger.info("Snapshot loaded", source=self.name, **snapshot.row_counts)
        return snapshot


class CsvDataSource(DataSource):
    """
    Reads the Olist CSV export from a directory.

    Example:
        snapshot = CsvDataSource("data/raw").load()
    """

    name = "csv"

    def __init__(
        self,
        directory: Optional[Union[str, Path]] = None,
        file_names: Optional[Dict[str, str]] = None,
        delimiter: str = ",",
        encoding: str = "utf8",
    ):
        self.directory = Path(directory or get_settings().data_lake.raw_path)
        self.file_names = {**OLIST_FILE_NAMES, **(file_names or {})}
        self.delimiter = delimiter
        self.encoding = encoding

    def _read(self, collection: str) -> pl.DataFrame:
        path = self.directory / self.file_names[collection]
        if not path.exists():
            raise DataSourceError(f"Missing file for '{collection}': {path}")

        # Read everything as strings; normalize_frame owns the typing
        df = pl.read_csv(
            path,
            separator=self.delimiter,
            encoding=self.encoding,
            infer_schema_length=0,
            null_values=NULL_VALUES,
        )
        logger.debug("CSV read", collection=collection, path=str(path), rows=df.height)
        return df


class DatabaseDataSource(DataSource):
    """Reads the snapshot tables through a SQLAlchemy engine"""

    name = "database"

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine if engine is not None else get_engine()

    def _read(self, collection: str) -> pl.DataFrame:
        model = TABLE_MODELS[collection]
        schema = SCHEMAS[collection]
        columns = [getattr(model, column) for column in schema]

        with get_db(self.engine) as session:
            rows = session.execute(select(*columns)).all()

        logger.debug("Table read", collection=collection, table=model.__tablename__, rows=len(rows))
        return pl.DataFrame([tuple(r) for r in rows], schema=schema, orient="row")


class InMemoryDataSource(DataSource):
    """
    Wraps frames or lists of record dicts.

    A missing collection is treated as empty.
    """

    name = "memory"

    def __init__(
        self,
        orders: FrameLike = None,
        order_items: FrameLike = None,
        products: FrameLike = None,
        category_translations: FrameLike = None,
        reviews: FrameLike = None,
    ):
        self._frames: Dict[str, FrameLike] = {
            "orders": orders,
            "order_items": order_items,
            "products": products,
            "category_translations": category_translations,
            "reviews": reviews,
        }

    def _read(self, collection: str) -> pl.DataFrame:
        data = self._frames[collection]
        if data is None:
            return empty_frame(collection)
        if isinstance(data, pl.DataFrame):
            return data
        records: List[Mapping[str, Any]] = list(data)
        if not records:
            return empty_frame(collection)
        return pl.DataFrame(records, infer_schema_length=None)
