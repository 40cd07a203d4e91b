"""
Synthetic Snapshot Generator

Generates an Olist-shaped snapshot for development and demos:
- orders with realistic status mix and delivery dates
- order items spread over translated and untranslated categories
- reviews whose scores drop when deliveries are late

Output is deterministic for a given seed.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import structlog
from faker import Faker

from src.ingestion.sources import OLIST_FILE_NAMES, SCHEMAS, InMemoryDataSource, Snapshot

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

# (category code, English name or None when untranslated, late probability)
CATEGORIES: List[Tuple[str, Optional[str], float]] = [
    ("eletronicos", "electronics", 0.10),
    ("cama_mesa_banho", "bed_bath_table", 0.08),
    ("beleza_saude", "health_beauty", 0.07),
    ("esporte_lazer", "sports_leisure", 0.07),
    ("moveis_decoracao", "furniture_decor", 0.09),
    ("malas_acessorios", "luggage_accessories", 0.04),
    ("audio", "audio", 0.13),
    ("casa_conforto_2", "home_comfort_2", 0.16),
    ("pc_gamer", None, 0.08),
]

ORDER_STATUSES = [
    ("delivered", 0.970),
    ("shipped", 0.011),
    ("canceled", 0.006),
    ("unavailable", 0.006),
    ("invoiced", 0.003),
    ("processing", 0.003),
    ("created", 0.001),
]

# Review score weights for on-time and late deliveries
ON_TIME_SCORE_WEIGHTS = [0.08, 0.03, 0.08, 0.20, 0.61]
LATE_SCORE_WEIGHTS = [0.45, 0.10, 0.12, 0.13, 0.20]

PURCHASE_START = datetime(2016, 9, 1)
PURCHASE_END = datetime(2018, 8, 31)


class SnapshotGenerator:
    """
    Generate a synthetic snapshot.

    Example:
        snapshot = SnapshotGenerator(seed=7).generate(n_orders=5000)
    """

    def __init__(
        self,
        seed: int = 42,
        missing_estimate_rate: float = 0.005,
        missing_score_rate: float = 0.005,
        canceled_delivered_rate: float = 0.1,
    ):
        self.seed = seed
        self.missing_estimate_rate = missing_estimate_rate
        self.missing_score_rate = missing_score_rate
        self.canceled_delivered_rate = canceled_delivered_rate
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def _id(self) -> str:
        return self.fake.hexify(text="^" * 32)

    def _products(self, n: int) -> List[Dict]:
        codes = [c[0] for c in CATEGORIES]
        products = []
        for _ in range(n):
            # A few products carry no category at all
            category = None if self.rng.random() < 0.02 else codes[self.rng.integers(len(codes))]
            products.append({"product_id": self._id(), "product_category_name": category})
        return products

    def _purchase_time(self) -> datetime:
        span = (PURCHASE_END - PURCHASE_START).total_seconds()
        return PURCHASE_START + timedelta(seconds=float(self.rng.uniform(0, span)))

    def _order(self, late_probability: float) -> Tuple[Dict, Optional[bool]]:
        statuses, weights = zip(*ORDER_STATUSES)
        status = statuses[self.rng.choice(len(statuses), p=np.array(weights) / sum(weights))]
        purchased = self._purchase_time()
        estimated = (purchased + timedelta(days=int(self.rng.integers(10, 40)))).replace(
            hour=0, minute=0, second=0, microsecond=0
        )

        delivered = None
        carries_delivery = status == "delivered" or (
            status == "canceled" and self.rng.random() < self.canceled_delivered_rate
        )
        if carries_delivery:
            if self.rng.random() < late_probability:
                delivered = estimated + timedelta(days=float(self.rng.uniform(0.5, 20)))
            else:
                delivered = estimated - timedelta(days=float(self.rng.uniform(0, 15)))

        if self.rng.random() < self.missing_estimate_rate:
            estimated = None

        late = None
        if delivered is not None and estimated is not None:
            late = delivered > estimated

        return {
            "order_id": self._id(),
            "order_status": status,
            "order_estimated_delivery_date": estimated,
            "order_delivered_customer_date": delivered,
        }, late

    def _review(self, order_id: str, late: Optional[bool]) -> Dict:
        weights = LATE_SCORE_WEIGHTS if late else ON_TIME_SCORE_WEIGHTS
        score: Optional[int] = int(self.rng.choice(5, p=weights)) + 1
        if self.rng.random() < self.missing_score_rate:
            score = None
        return {"review_id": self._id(), "order_id": order_id, "review_score": score}

    def generate(self, n_orders: int = 1000, n_products: Optional[int] = None) -> Snapshot:
        """Generate a snapshot with n_orders orders"""
        n_products = n_products or max(10, n_orders // 4)
        logger.info("Generating synthetic snapshot", orders=n_orders, products=n_products, seed=self.seed)

        products = self._products(n_products)
        late_by_code = {code: p for code, _, p in CATEGORIES}

        orders, items, reviews = [], [], []
        for _ in range(n_orders):
            n_items = int(self.rng.choice([1, 1, 1, 2, 3]))
            picked = [products[self.rng.integers(len(products))] for _ in range(n_items)]
            late_probability = max(
                late_by_code.get(p["product_category_name"], 0.08) for p in picked
            )

            order, late = self._order(late_probability)
            orders.append(order)
            for line, product in enumerate(picked, start=1):
                items.append({
                    "order_id": order["order_id"],
                    "order_item_id": line,
                    "product_id": product["product_id"],
                })

            # Most orders get one review
            if self.rng.random() < 0.99:
                reviews.append(self._review(order["order_id"], late))

        translations = [
            {"product_category_name": code, "product_category_name_english": english}
            for code, english, _ in CATEGORIES
            if english is not None
        ]

        return InMemoryDataSource(
            orders=orders,
            order_items=items,
            products=products,
            category_translations=translations,
            reviews=reviews,
        ).load()


def write_snapshot_csv(snapshot: Snapshot, directory: Union[str, Path]) -> Dict[str, Path]:
    """Write a snapshot as Olist-named CSV files"""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    paths = {}
    for collection in SCHEMAS:
        path = directory / OLIST_FILE_NAMES[collection]
        snapshot.frame(collection).write_csv(path, datetime_format="%Y-%m-%d %H:%M:%S")
        paths[collection] = path
        logger.info(f"Written {snapshot.frame(collection).height} rows to {path}")
    return paths
