"""
Profit Breakdown — order-level revenue/cost rollup and cancellation losses.

Revenue per line  = unit_price × qty + shipping_fee_per_unit × qty
Marketplace fee   = fee_rate × line revenue  (8% default)
Product cost      = cost_per_unit × qty
Fulfillment cost  = counted ONCE per order_number, not per line
Net profit        = revenue − fees − product cost − fulfillment
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from inventory.policy import TenantPolicy
from inventory.records import field_value, first_present, record_quantity, to_number

DEFAULT_MARKETPLACE_FEE_RATE = 0.08


@dataclass
class ProfitBreakdown:
    revenue: float = 0.0
    shipping_income: float = 0.0
    total_revenue: float = 0.0
    marketplace_fee: float = 0.0
    cost_of_product: float = 0.0
    additional_costs: float = 0.0
    net_profit: float = 0.0
    profit_margin: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def calculate_profit_breakdown(
    sales: Iterable[Mapping[str, Any] | Any],
    fee_rate: float = DEFAULT_MARKETPLACE_FEE_RATE,
) -> ProfitBreakdown:
    """Roll sale lines up to orders, then to a single breakdown."""
    totals = ProfitBreakdown()
    seen_orders: set[str] = set()

    for index, sale in enumerate(sales):
        qty = record_quantity(sale)
        revenue = to_number(first_present(sale, ("unit_price", "sale_price"))) * qty
        shipping_income = to_number(field_value(sale, "shipping_fee_per_unit")) * qty
        line_total = revenue + shipping_income

        totals.revenue += revenue
        totals.shipping_income += shipping_income
        totals.total_revenue += line_total
        totals.marketplace_fee += line_total * fee_rate
        totals.cost_of_product += to_number(field_value(sale, "cost_per_unit")) * qty

        order_number = field_value(sale, "order_number") or f"unknown_sale_{field_value(sale, 'id', index)}"
        if order_number not in seen_orders:
            seen_orders.add(order_number)
            fulfillment = first_present(sale, ("fulfillment_cost", "additional_costs"))
            totals.additional_costs += to_number(fulfillment)

    totals.net_profit = (
        totals.total_revenue - totals.marketplace_fee - totals.cost_of_product - totals.additional_costs
    )
    totals.profit_margin = totals.net_profit / totals.total_revenue * 100 if totals.total_revenue > 0 else 0.0
    return totals


def calculate_cancellation_loss(order: Mapping[str, Any] | Any, policy: TenantPolicy = TenantPolicy()) -> float:
    """
    Loss caused by one canceled order.

    Before shipping only the refund is lost. After shipping the shipping
    outlay is lost too: the recorded shipping_loss if present, else label +
    shipping cost, else the tenant's flat cancellation_shipping_loss.
    """
    loss = to_number(field_value(order, "refund_amount"))
    if field_value(order, "shipping_status") != "after_shipping":
        return loss

    recorded = field_value(order, "shipping_loss")
    if recorded is not None:
        return loss + to_number(recorded)
    outlay = policy.label_cost + policy.shipping_cost
    return loss + (outlay if outlay > 0 else policy.cancellation_shipping_loss)


def summarize_cancellation_losses(
    orders: Iterable[Mapping[str, Any] | Any],
    policy: TenantPolicy = TenantPolicy(),
) -> dict[str, float | int]:
    summary: dict[str, float | int] = {
        "total_loss": 0.0,
        "before_shipping_loss": 0.0,
        "after_shipping_loss": 0.0,
        "total_orders": 0,
        "before_shipping_orders": 0,
        "after_shipping_orders": 0,
    }
    for order in orders:
        loss = calculate_cancellation_loss(order, policy)
        summary["total_loss"] += loss
        summary["total_orders"] += 1
        if field_value(order, "shipping_status") == "after_shipping":
            summary["after_shipping_loss"] += loss
            summary["after_shipping_orders"] += 1
        else:
            summary["before_shipping_loss"] += loss
            summary["before_shipping_orders"] += 1
    return summary
