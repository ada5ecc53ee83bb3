"""
Profit Reports — revenue / profit / cancellation-loss series per day or month.

Orders per period count distinct order numbers, not sale lines.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from inventory.policy import TenantPolicy
from inventory.profit import calculate_cancellation_loss
from inventory.records import field_value, record_date, to_datetime, to_number

PERIOD_FORMATS = {
    "daily": "%Y-%m-%d",
    "monthly": "%Y-%m",
}


def _sales_frame(sales: Iterable[Mapping[str, Any] | Any]) -> pd.DataFrame:
    rows = []
    for index, sale in enumerate(sales):
        rows.append(
            {
                "date": record_date(sale),
                "revenue": to_number(field_value(sale, "total_revenue")),
                "profit": to_number(field_value(sale, "net_profit")),
                "order_number": field_value(sale, "order_number") or f"unknown_sale_{field_value(sale, 'id', index)}",
            }
        )
    frame = pd.DataFrame(rows, columns=["date", "revenue", "profit", "order_number"])
    frame["date"] = pd.to_datetime(frame["date"], errors="coerce")
    return frame.dropna(subset=["date"])


def _loss_frame(canceled_orders: Iterable[Mapping[str, Any] | Any], policy: TenantPolicy) -> pd.DataFrame:
    rows = [
        {
            "date": to_datetime(field_value(order, "canceled_date")),
            "losses": calculate_cancellation_loss(order, policy),
        }
        for order in canceled_orders
    ]
    frame = pd.DataFrame(rows, columns=["date", "losses"])
    frame["date"] = pd.to_datetime(frame["date"], errors="coerce")
    return frame.dropna(subset=["date"])


def build_profit_timeseries(
    sales: Iterable[Mapping[str, Any] | Any],
    canceled_orders: Iterable[Mapping[str, Any] | Any] = (),
    policy: TenantPolicy = TenantPolicy(),
    timeframe: str = "daily",
) -> dict[str, Any]:
    """
    Returns {"data": [period points...], "totals": {...}}.

    Each point: date, revenue, profit, losses, net_profit, orders.
    Periods with only cancellations still appear (revenue 0).
    """
    if timeframe not in PERIOD_FORMATS:
        raise ValueError(f"Unsupported timeframe '{timeframe}', expected one of {sorted(PERIOD_FORMATS)}")
    fmt = PERIOD_FORMATS[timeframe]

    sales_df = _sales_frame(sales)
    losses_df = _loss_frame(canceled_orders, policy)

    sales_df["period"] = sales_df["date"].dt.strftime(fmt)
    losses_df["period"] = losses_df["date"].dt.strftime(fmt)

    per_period = sales_df.groupby("period").agg(
        revenue=("revenue", "sum"),
        profit=("profit", "sum"),
        orders=("order_number", "nunique"),
    )
    losses = losses_df.groupby("period").agg(losses=("losses", "sum"))
    combined = per_period.join(losses, how="outer").fillna(0.0).sort_index()
    combined["net_profit"] = combined["profit"] - combined["losses"]

    data = [
        {
            "date": period,
            "revenue": round(float(row["revenue"]), 2),
            "profit": round(float(row["profit"]), 2),
            "losses": round(float(row["losses"]), 2),
            "net_profit": round(float(row["net_profit"]), 2),
            "orders": int(row["orders"]),
        }
        for period, row in combined.iterrows()
    ]

    total_revenue = float(combined["revenue"].sum())
    net_profit = float(combined["net_profit"].sum())
    totals = {
        "total_revenue": round(total_revenue, 2),
        "total_profit": round(float(combined["profit"].sum()), 2),
        "total_losses": round(float(combined["losses"].sum()), 2),
        "net_profit": round(net_profit, 2),
        "total_orders": int(combined["orders"].sum()),
        "profit_margin": round(net_profit / total_revenue * 100, 2) if total_revenue > 0 else 0.0,
    }
    return {"data": data, "totals": totals}
