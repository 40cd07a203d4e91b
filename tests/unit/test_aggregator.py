"""
Unit Tests - Delivery Aggregates
"""
from datetime import datetime

import pytest

from src.analytics import Aggregator, InvalidAggregationInput, percent
from src.analytics.results import CanceledDelivery, CategoryLateRate, ScoreLateRate, StatusShare
from src.config import ReportSettings, Settings


def _orders(*pairs):
    """Delivered orders from (estimated, delivered) pairs"""
    return [
        {
            "order_id": f"o{i}",
            "order_status": "delivered",
            "order_estimated_delivery_date": estimated,
            "order_delivered_customer_date": delivered,
        }
        for i, (estimated, delivered) in enumerate(pairs, start=1)
    ]


class TestPercent:
    """Tests for percentage rounding"""

    def test_thirds(self):
        assert percent(1, 3) == 33.33
        assert percent(2, 3) == 66.67

    def test_rounds_half_up(self):
        assert percent(1, 800) == 0.13
        assert percent(1, 8) == 12.5

    def test_zero_part(self):
        assert percent(0, 7) == 0.0

    def test_decimals(self):
        assert percent(1, 3, decimals=0) == 33.0
        assert percent(1, 3, decimals=4) == 33.3333

    @pytest.mark.parametrize("whole", [0, -1])
    def test_non_positive_whole_raises(self, whole):
        with pytest.raises(InvalidAggregationInput):
            percent(1, whole)


class TestDistributions:
    """Tests for status and timeliness distributions"""

    def test_status_distribution(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).status_distribution()

        assert rows == [
            StatusShare(status="delivered", order_count=5, percent_of_total=71.43),
            StatusShare(status="canceled", order_count=1, percent_of_total=14.29),
            StatusShare(status="shipped", order_count=1, percent_of_total=14.29),
        ]

    def test_status_distribution_counts_every_order(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).status_distribution()

        assert sum(r.order_count for r in rows) == sample_snapshot.orders.height
        assert sum(r.percent_of_total for r in rows) == pytest.approx(100, abs=0.01 * len(rows))

    def test_three_order_timeliness(self, make_snapshot, test_settings):
        snapshot = make_snapshot(orders=_orders(
            (datetime(2018, 1, 10), datetime(2018, 1, 8)),
            (datetime(2018, 1, 10), datetime(2018, 1, 12)),
            (datetime(2018, 1, 10), datetime(2018, 1, 10)),
        ))

        rows = Aggregator(snapshot, test_settings).overall_timeliness()

        assert rows == [
            StatusShare(status="on_time", order_count=2, percent_of_total=66.67),
            StatusShare(status="late", order_count=1, percent_of_total=33.33),
        ]

    def test_overall_timeliness(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).overall_timeliness()
        by_status = {r.status: r for r in rows}

        assert by_status["on_time"].order_count == 3
        assert by_status["late"].order_count == 2
        assert by_status["on_time"].percent_of_total == 60.0
        assert by_status["late"].percent_of_total == 40.0

    def test_overall_timeliness_counts_classified_orders(self, sample_snapshot, test_settings):
        aggregator = Aggregator(sample_snapshot, test_settings)
        rows = aggregator.overall_timeliness()

        assert sum(r.order_count for r in rows) == aggregator.classified.height
        assert sum(r.percent_of_total for r in rows) == pytest.approx(100, abs=0.02)

    def test_classified_status_breakdown(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).classified_status_breakdown()

        assert [(r.status, r.order_count) for r in rows] == [("delivered", 4), ("canceled", 1)]

    def test_canceled_with_delivery_dates(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).canceled_with_delivery_dates()

        assert rows == [
            CanceledDelivery(
                order_id="o4",
                estimated_delivery_date=datetime(2018, 1, 10),
                delivered_customer_date=datetime(2018, 1, 15, 18),
                on_time_status="late",
            )
        ]

    def test_empty_snapshot(self, make_snapshot, test_settings):
        aggregator = Aggregator(make_snapshot(), test_settings)

        assert aggregator.status_distribution() == []
        assert aggregator.overall_timeliness() == []
        assert aggregator.canceled_with_delivery_dates() == []


class TestCategoryLateRate:
    """Tests for category late rates"""

    def test_category_late_rate(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).category_late_rate()

        assert rows == [
            CategoryLateRate(category="health_beauty", total_orders=3, late_rate_percent=66.67),
            CategoryLateRate(category="audio", total_orders=2, late_rate_percent=50.0),
        ]

    def test_untranslated_and_orphan_rows_drop_out(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).category_late_rate()
        categories = {r.category for r in rows}

        # pc_gamer has no translation; furniture_decor has no items
        assert categories == {"health_beauty", "audio"}

    def test_min_orders_is_inclusive(self, sample_snapshot, test_settings):
        aggregator = Aggregator(sample_snapshot, test_settings)

        assert [r.category for r in aggregator.category_late_rate(min_orders=3)] == ["health_beauty"]
        assert aggregator.category_late_rate(min_orders=4) == []
        assert len(aggregator.category_late_rate(min_orders=0)) == 2

    def test_negative_min_orders_raises(self, sample_snapshot, test_settings):
        with pytest.raises(InvalidAggregationInput):
            Aggregator(sample_snapshot, test_settings).category_late_rate(min_orders=-1)

    def test_volume_floor_at_500(self, make_snapshot, test_settings):
        """A category with 499 rows is excluded, one with 500 is kept"""
        orders, items = [], []
        for category, count in (("big", 500), ("small", 499)):
            for i in range(count):
                order_id = f"{category}-{i}"
                orders.append({
                    "order_id": order_id,
                    "order_status": "delivered",
                    "order_estimated_delivery_date": datetime(2018, 1, 10),
                    # Every tenth order is late
                    "order_delivered_customer_date": datetime(2018, 1, 12 if i % 10 == 0 else 9),
                })
                items.append({"order_id": order_id, "order_item_id": 1, "product_id": f"p-{category}"})

        snapshot = make_snapshot(
            orders=orders,
            order_items=items,
            products=[
                {"product_id": "p-big", "product_category_name": "grande"},
                {"product_id": "p-small", "product_category_name": "pequeno"},
            ],
            category_translations=[
                {"product_category_name": "grande", "product_category_name_english": "big"},
                {"product_category_name": "pequeno", "product_category_name_english": "small"},
            ],
        )

        aggregator = Aggregator(snapshot, test_settings)
        filtered = aggregator.category_late_rate(min_orders=500)
        unfiltered = aggregator.category_late_rate()

        assert filtered == [CategoryLateRate(category="big", total_orders=500, late_rate_percent=10.0)]
        assert {r.category for r in unfiltered} == {"big", "small"}
        assert filtered == [r for r in unfiltered if r.total_orders >= 500]

    def test_ties_ordered_by_volume_then_name(self, make_snapshot, test_settings):
        orders = _orders(*[(datetime(2018, 1, 10), datetime(2018, 1, 9))] * 5)
        items = [
            {"order_id": "o1", "order_item_id": 1, "product_id": "pa"},
            {"order_id": "o2", "order_item_id": 1, "product_id": "pb"},
            {"order_id": "o3", "order_item_id": 1, "product_id": "pc"},
            {"order_id": "o4", "order_item_id": 1, "product_id": "pc"},
            {"order_id": "o5", "order_item_id": 1, "product_id": "pb"},
        ]
        snapshot = make_snapshot(
            orders=orders,
            order_items=items,
            products=[{"product_id": p, "product_category_name": p} for p in ("pa", "pb", "pc")],
            category_translations=[
                {"product_category_name": "pa", "product_category_name_english": "zeta"},
                {"product_category_name": "pb", "product_category_name_english": "beta"},
                {"product_category_name": "pc", "product_category_name_english": "alpha"},
            ],
        )

        rows = Aggregator(snapshot, test_settings).category_late_rate()

        assert [r.category for r in rows] == ["alpha", "beta", "zeta"]
        assert all(r.late_rate_percent == 0.0 for r in rows)


class TestReviewScoreLateRate:
    """Tests for review score late rates"""

    def test_review_score_late_rate(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).review_score_late_rate()

        assert rows == [
            ScoreLateRate(review_score=1, late_rate_percent=100.0, order_count=2),
            ScoreLateRate(review_score=5, late_rate_percent=0.0, order_count=2),
        ]

    def test_null_scores_are_excluded(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).review_score_late_rate()

        # o7 is classified but its only review has no score
        assert sum(r.order_count for r in rows) == 4

    def test_empty_reviews(self, make_snapshot, orders_records, test_settings):
        aggregator = Aggregator(make_snapshot(orders=orders_records), test_settings)

        assert aggregator.review_score_late_rate() == []
        assert aggregator.yearly_score_late_rate() == []


class TestYearlyScoreLateRate:
    """Tests for yearly review score late rates"""

    def test_yearly_score_late_rate(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).yearly_score_late_rate()

        assert [
            (r.year, r.review_score, r.total_orders, r.late_orders, r.late_rate_percent)
            for r in rows
        ] == [
            (2017, 1, 1, 1, 100.0),
            (2017, 5, 1, 0, 0.0),
            (2018, 1, 1, 1, 100.0),
            (2018, 3, 1, 0, 0.0),
            (2018, 5, 1, 0, 0.0),
        ]

    def test_missing_estimate_counts_but_is_never_late(self, sample_snapshot, test_settings):
        rows = Aggregator(sample_snapshot, test_settings).yearly_score_late_rate()
        o6 = [r for r in rows if (r.year, r.review_score) == (2018, 3)]

        assert len(o6) == 1
        assert o6[0].total_orders == 1
        assert o6[0].late_orders == 0

    def test_require_estimated_date(self, sample_snapshot):
        settings = Settings(
            app_env="testing",
            reports=ReportSettings(yearly_require_estimated_date=True),
        )
        rows = Aggregator(sample_snapshot, settings).yearly_score_late_rate()

        assert (2018, 3) not in {(r.year, r.review_score) for r in rows}
        assert len(rows) == 4

    def test_year_comes_from_delivered_date(self, make_snapshot, test_settings):
        snapshot = make_snapshot(
            orders=_orders((datetime(2017, 12, 28), datetime(2018, 1, 3))),
            reviews=[{"review_id": "r1", "order_id": "o1", "review_score": 2}],
        )

        rows = Aggregator(snapshot, test_settings).yearly_score_late_rate()

        assert [(r.year, r.late_orders) for r in rows] == [(2018, 1)]


class TestAggregatorState:
    """Tests for determinism and snapshot refresh"""

    def test_aggregates_are_idempotent(self, sample_snapshot, test_settings):
        aggregator = Aggregator(sample_snapshot, test_settings)

        assert aggregator.category_late_rate() == aggregator.category_late_rate()
        assert aggregator.yearly_score_late_rate() == aggregator.yearly_score_late_rate()
        assert aggregator.review_score_late_rate() == Aggregator(sample_snapshot, test_settings).review_score_late_rate()

    def test_refresh_follows_new_snapshot(self, sample_snapshot, make_snapshot, orders_records, test_settings):
        aggregator = Aggregator(sample_snapshot, test_settings)
        assert sum(r.order_count for r in aggregator.overall_timeliness()) == 5

        aggregator.refresh(make_snapshot(orders=orders_records[:2]))

        assert sum(r.order_count for r in aggregator.overall_timeliness()) == 2
        assert aggregator.status_distribution()[0].order_count == 2
