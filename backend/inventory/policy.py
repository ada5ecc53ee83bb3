"""
Engine Policy — tenant settings and threshold tables for the reorder engine.

TenantPolicy is the validated per-tenant settings record (app_settings row).
StockThresholds / PriorityThresholds / ReorderPolicy are the fixed tables the
classifier and generator consume; they default to the values in core.config.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}

TREND_MULTIPLIERS = {
    "increasing": 1.2,  # +20% buffer for accelerating demand
    "stable": 1.0,
    "decreasing": 0.8,  # -20% for slowing demand
}


class TenantPolicy(BaseModel):
    """Per-tenant reorder + cost policy with defaults enumerated once."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    auto_reorder_enabled: bool = False
    minimum_profit_margin: float = Field(default=25.0, le=100)
    shipping_cost: float = Field(default=1.75, ge=0)
    label_cost: float = Field(default=2.25, ge=0)
    cancellation_shipping_loss: float = Field(default=4.00, ge=0)

    @field_validator("auto_reorder_enabled", mode="before")
    @classmethod
    def _null_bool(cls, value: Any) -> Any:
        return False if value is None else value

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | Any | None) -> TenantPolicy:
        """
        Build a policy from an app_settings row (dict or ORM object).

        Missing or null fields fall back to defaults. Out-of-range values
        raise pydantic.ValidationError.
        """
        if row is None:
            return cls()
        payload: dict[str, Any] = {}
        for name in cls.model_fields:
            value = row.get(name) if isinstance(row, Mapping) else getattr(row, name, None)
            if value is not None:
                payload[name] = value
        return cls(**payload)


@dataclass(frozen=True)
class StockThresholds:
    """available ≤ out_of_stock_at → out_of_stock; available < low_stock_below → low_stock."""

    out_of_stock_at: float = 0
    low_stock_below: float = 5


@dataclass(frozen=True)
class PriorityThresholds:
    """Days-until-stockout bands. Strictly below `high_below` is high priority."""

    high_below: float = 7
    medium_below: float = 14

    def classify(self, days_until_stockout: float) -> str:
        if days_until_stockout < self.high_below:
            return "high"
        elif days_until_stockout < self.medium_below:
            return "medium"
        return "low"


@dataclass(frozen=True)
class ReorderPolicy:
    """Velocity window, resupply horizon, and priority banding for the generator."""

    velocity_window_days: int = 30
    trend_window_days: int = 14
    trend_threshold: float = 0.10
    target_cover_days: int = 45
    priorities: PriorityThresholds = field(default_factory=PriorityThresholds)

    @classmethod
    def from_settings(cls, settings: Any) -> ReorderPolicy:
        return cls(
            velocity_window_days=max(1, int(settings.reorder_velocity_window_days)),
            trend_window_days=max(1, int(settings.reorder_trend_window_days)),
            target_cover_days=max(1, int(settings.reorder_target_cover_days)),
            priorities=PriorityThresholds(
                high_below=settings.priority_high_days,
                medium_below=settings.priority_medium_days,
            ),
        )


def stock_thresholds_from_settings(settings: Any) -> StockThresholds:
    return StockThresholds(low_stock_below=settings.low_stock_threshold)
