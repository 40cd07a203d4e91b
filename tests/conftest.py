"""
Test Suite Configuration
"""
from datetime import datetime
from typing import Callable

import pytest

from src.config import ReportSettings, Settings
from src.ingestion import InMemoryDataSource, Snapshot


def d(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        reports=ReportSettings(min_category_orders=3),
    )


@pytest.fixture
def make_snapshot() -> Callable[..., Snapshot]:
    """Build a snapshot from record lists; omitted collections are empty"""
    def factory(**collections) -> Snapshot:
        return InMemoryDataSource(**collections).load()
    return factory


@pytest.fixture
def orders_records():
    """
    Seven orders covering every classification path:
    on time, late, equal dates, canceled but delivered late,
    missing delivery date and missing estimated date.
    """
    return [
        {"order_id": "o1", "order_status": "delivered",
         "order_estimated_delivery_date": d(2017, 5, 10), "order_delivered_customer_date": d(2017, 5, 8, 14)},
        {"order_id": "o2", "order_status": "delivered",
         "order_estimated_delivery_date": d(2017, 5, 10), "order_delivered_customer_date": d(2017, 5, 12, 9)},
        {"order_id": "o3", "order_status": "delivered",
         "order_estimated_delivery_date": d(2018, 3, 1), "order_delivered_customer_date": d(2018, 3, 1)},
        {"order_id": "o4", "order_status": "canceled",
         "order_estimated_delivery_date": d(2018, 1, 10), "order_delivered_customer_date": d(2018, 1, 15, 18)},
        {"order_id": "o5", "order_status": "shipped",
         "order_estimated_delivery_date": d(2018, 2, 1), "order_delivered_customer_date": None},
        {"order_id": "o6", "order_status": "delivered",
         "order_estimated_delivery_date": None, "order_delivered_customer_date": d(2018, 4, 2, 11)},
        {"order_id": "o7", "order_status": "delivered",
         "order_estimated_delivery_date": d(2017, 7, 1), "order_delivered_customer_date": d(2017, 6, 20, 10)},
    ]


@pytest.fixture
def order_items_records():
    return [
        {"order_id": "o1", "order_item_id": 1, "product_id": "p1"},
        {"order_id": "o2", "order_item_id": 1, "product_id": "p1"},
        {"order_id": "o2", "order_item_id": 2, "product_id": "p2"},
        {"order_id": "o3", "order_item_id": 1, "product_id": "p2"},
        {"order_id": "o4", "order_item_id": 1, "product_id": "p1"},
        {"order_id": "o5", "order_item_id": 1, "product_id": "p1"},
        {"order_id": "o6", "order_item_id": 1, "product_id": "p2"},
        # Untranslated category, unknown product, unknown order
        {"order_id": "o7", "order_item_id": 1, "product_id": "p3"},
        {"order_id": "o7", "order_item_id": 2, "product_id": "px"},
        {"order_id": "o99", "order_item_id": 1, "product_id": "p1"},
    ]


@pytest.fixture
def products_records():
    return [
        {"product_id": "p1", "product_category_name": "beleza_saude"},
        {"product_id": "p2", "product_category_name": "audio"},
        {"product_id": "p3", "product_category_name": "pc_gamer"},
        {"product_id": "p4", "product_category_name": None},
    ]


@pytest.fixture
def translations_records():
    return [
        {"product_category_name": "beleza_saude", "product_category_name_english": "health_beauty"},
        {"product_category_name": "audio", "product_category_name_english": "audio"},
        {"product_category_name": "moveis_decoracao", "product_category_name_english": "furniture_decor"},
    ]


@pytest.fixture
def reviews_records():
    return [
        {"review_id": "r1", "order_id": "o1", "review_score": 5},
        {"review_id": "r2", "order_id": "o2", "review_score": 1},
        {"review_id": "r3", "order_id": "o3", "review_score": 5},
        {"review_id": "r4", "order_id": "o4", "review_score": 1},
        {"review_id": "r5", "order_id": "o6", "review_score": 3},
        {"review_id": "r6", "order_id": "o7", "review_score": None},
        {"review_id": "r7", "order_id": "o5", "review_score": 2},
        {"review_id": "r8", "order_id": "o99", "review_score": 4},
    ]


@pytest.fixture
def sample_snapshot(
    make_snapshot,
    orders_records,
    order_items_records,
    products_records,
    translations_records,
    reviews_records,
) -> Snapshot:
    """Small snapshot with hand-checked aggregates"""
    return make_snapshot(
        orders=orders_records,
        order_items=order_items_records,
        products=products_records,
        category_translations=translations_records,
        reviews=reviews_records,
    )
