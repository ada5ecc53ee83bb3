"""
Tests for Product Performance aggregation.

Covers:
  - Grouping by SKU with product-id fallback
  - Margin / ROI formulas and their zero-revenue guards
  - Revenue conservation across SKUs
  - Identifier handling (raise vs. skip)
  - Malformed numerics coerced to 0
  - Last-order recency across UTC offsets
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.errors import MissingIdentifierError
from inventory.performance import (
    aggregate_product_performance,
    index_performance,
    summarize_performance,
)


def _order(sku="SKU-1", qty=1, revenue=10.0, profit=2.0, roi=20.0, **extra):
    row = {"sku": sku, "quantity": qty, "total_revenue": revenue, "net_profit": profit, "roi": roi}
    row.update(extra)
    return row


# ── Grouping ───────────────────────────────────────────────────────────


class TestGrouping:
    def test_groups_by_sku_in_first_seen_order(self):
        orders = [_order("B"), _order("A"), _order("B")]
        result = aggregate_product_performance(orders)
        assert [p.sku for p in result] == ["B", "A"]
        assert result[0].order_count == 2

    def test_product_id_used_when_sku_missing(self):
        orders = [_order(sku=None, product_id="p-1"), _order(sku="", product_id="p-1")]
        result = aggregate_product_performance(orders)
        assert len(result) == 1
        assert result[0].sku == "p-1"
        assert result[0].order_count == 2

    def test_name_falls_back_to_key(self):
        result = aggregate_product_performance([_order("SKU-9")])
        assert result[0].name == "SKU-9"

    def test_name_from_first_record(self):
        result = aggregate_product_performance([_order(product_name="Widget"), _order(product_name="Other")])
        assert result[0].name == "Widget"

    def test_empty_input(self):
        assert aggregate_product_performance([]) == []

    def test_accepts_quantity_field_aliases(self):
        orders = [_order(qty=None, order_quantity=3), _order(qty=None, quantity_sold=2)]
        assert aggregate_product_performance(orders)[0].total_quantity == 5

    def test_last_order_date_is_latest(self):
        orders = [
            _order(order_date="2024-03-01T10:00:00"),
            _order(order_date=datetime(2024, 3, 5)),
            _order(sale_date="2024-02-01"),
        ]
        assert aggregate_product_performance(orders)[0].last_order_date == datetime(2024, 3, 5)

    def test_last_order_date_compares_offsets_in_utc(self):
        # 01:00+05:00 is 20:00Z on the 4th, earlier than 22:00Z
        orders = [
            _order(order_date="2024-03-04T22:00:00Z"),
            _order(order_date="2024-03-05T01:00:00+05:00"),
        ]
        assert aggregate_product_performance(orders)[0].last_order_date == datetime(2024, 3, 4, 22, 0)

    def test_last_order_date_from_aware_datetimes(self):
        orders = [
            _order(order_date=datetime(2024, 3, 4, 22, 0, tzinfo=timezone.utc)),
            _order(order_date=datetime(2024, 3, 5, 1, 0, tzinfo=timezone(timedelta(hours=5)))),
        ]
        assert aggregate_product_performance(orders)[0].last_order_date == datetime(2024, 3, 4, 22, 0)

    def test_equal_instants_keep_first_seen(self):
        orders = [
            _order(order_date="2024-03-04T22:00:00Z", product_name="First"),
            _order(order_date="2024-03-05T03:00:00+05:00", product_name="Second"),
            _order(order_date=datetime(2024, 3, 4, 22, 0), product_name="Third"),
        ]
        perf = aggregate_product_performance(orders)[0]
        assert perf.last_order_date == datetime(2024, 3, 4, 22, 0)
        assert perf.last_order_date.tzinfo is None
        assert perf.name == "First"


# ── Formulas ───────────────────────────────────────────────────────────


class TestFormulas:
    def test_margin_and_roi(self):
        orders = [_order(qty=2, revenue=100.0, profit=25.0, roi=40.0), _order(qty=4, revenue=100.0, profit=25.0, roi=20.0)]
        perf = aggregate_product_performance(orders)[0]
        assert perf.total_revenue == 200.0
        assert perf.total_profit == 50.0
        assert perf.profit_margin == pytest.approx(25.0)
        assert perf.roi == pytest.approx(30.0)
        assert perf.sales_only_roi == pytest.approx(50.0 / 150.0 * 100)
        assert perf.avg_quantity_per_order == 3
        assert perf.unit_profit == pytest.approx(50.0 / 6)

    def test_zero_revenue_yields_zero_margin(self):
        perf = aggregate_product_performance([_order(revenue=0.0, profit=0.0)])[0]
        assert perf.profit_margin == 0.0
        assert perf.sales_only_roi == 0.0

    def test_negative_profit(self):
        perf = aggregate_product_performance([_order(revenue=50.0, profit=-10.0)])[0]
        assert perf.profit_margin == pytest.approx(-20.0)

    def test_malformed_numbers_become_zero(self):
        orders = [_order(qty="n/a", revenue=float("nan"), profit="abc", roi=float("inf"))]
        perf = aggregate_product_performance(orders)[0]
        assert perf.total_quantity == 0
        assert perf.total_revenue == 0
        assert perf.total_profit == 0
        assert perf.roi == 0

    def test_revenue_is_conserved(self):
        orders = [_order("A", revenue=12.5), _order("B", revenue=7.25), _order("A", revenue=3.0)]
        result = aggregate_product_performance(orders)
        assert sum(p.total_revenue for p in result) == pytest.approx(22.75)


# ── Identifiers ────────────────────────────────────────────────────────


class TestIdentifiers:
    def test_missing_identifier_raises(self):
        with pytest.raises(MissingIdentifierError) as exc_info:
            aggregate_product_performance([_order(), _order(sku=None)])
        assert exc_info.value.record_index == 1

    def test_missing_identifier_skipped_on_request(self):
        result = aggregate_product_performance([_order(), _order(sku=None)], skip_unidentified=True)
        assert len(result) == 1
        assert result[0].order_count == 1

    def test_works_with_attribute_rows(self):
        class Row:
            sku = "OBJ-1"
            quantity = 2
            total_revenue = 30.0
            net_profit = 6.0
            roi = 10.0

        assert aggregate_product_performance([Row()])[0].total_revenue == 30.0


# ── Index / Summary ────────────────────────────────────────────────────


class TestIndexAndSummary:
    def test_index_by_sku_and_product_id(self):
        perf = aggregate_product_performance([_order("SKU-1", product_id="p-1")])
        index = index_performance(perf)
        assert index["SKU-1"] is index["p-1"]

    def test_summary_totals(self):
        perf = aggregate_product_performance(
            [_order("A", qty=2, revenue=100.0, profit=30.0), _order("B", qty=1, revenue=100.0, profit=10.0)]
        )
        summary = summarize_performance(perf)
        assert summary["product_count"] == 2
        assert summary["total_revenue"] == 200.0
        assert summary["total_profit"] == 40.0
        assert summary["total_quantity"] == 3
        assert summary["profit_margin"] == 20.0

    def test_summary_of_nothing(self):
        summary = summarize_performance([])
        assert summary["product_count"] == 0
        assert summary["profit_margin"] == 0.0
