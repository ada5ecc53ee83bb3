"""
Pricing Suggestions — merchandising hints derived from ProductPerformance.

Every rule that applies is returned:
  - margin < 15%                    → price_increase (up to +10%)
  - volume > 20, avg qty/order < 2  → bundle
  - volume < 10, margin > 25%       → marketing
  - volume > 20, margin > 25%       → protect
  - nothing applies                 → monitor
"""

from __future__ import annotations

from typing import Any

from inventory.performance import ProductPerformance

LOW_MARGIN_PCT = 15.0
HIGH_MARGIN_PCT = 25.0
HIGH_VOLUME_UNITS = 20
LOW_VOLUME_UNITS = 10
MAX_PRICE_INCREASE_PCT = 10.0


def generate_pricing_recommendations(perf: ProductPerformance) -> list[dict[str, Any]]:
    recommendations = []

    if perf.profit_margin < LOW_MARGIN_PCT:
        increase = min(MAX_PRICE_INCREASE_PCT, LOW_MARGIN_PCT - perf.profit_margin)
        avg_price = perf.total_revenue / perf.total_quantity if perf.total_quantity > 0 else 0.0
        recommendations.append(
            {
                "type": "price_increase",
                "title": "Increase Price",
                "description": f"Consider increasing price by {increase:.1f}% to improve margins.",
                "impact": (
                    f"A {increase:.1f}% price increase could improve profit margin to approximately "
                    f"{perf.profit_margin + increase:.1f}%."
                ),
                "action": f"New suggested price: ${avg_price * (1 + increase / 100):,.2f}/unit",
            }
        )

    if perf.total_quantity > HIGH_VOLUME_UNITS and perf.avg_quantity_per_order < 2:
        recommendations.append(
            {
                "type": "bundle",
                "title": "Create Bundle Offers",
                "description": "This product sells frequently but in small quantities.",
                "impact": "Bundle pricing could increase average order size and reduce shipping costs per unit.",
                "action": 'Consider "Buy 2, get 15% off" or similar bundle offers.',
            }
        )

    if perf.total_quantity < LOW_VOLUME_UNITS and perf.profit_margin > HIGH_MARGIN_PCT:
        recommendations.append(
            {
                "type": "marketing",
                "title": "Increase Marketing",
                "description": "This is a high-margin product with low sales volume.",
                "impact": "Increasing visibility could significantly boost overall profits.",
                "action": "Consider featuring this product prominently or running targeted promotions.",
            }
        )

    if perf.total_quantity > HIGH_VOLUME_UNITS and perf.profit_margin > HIGH_MARGIN_PCT:
        recommendations.append(
            {
                "type": "protect",
                "title": "Protect Market Position",
                "description": "This is a star performer with high volume and margins.",
                "impact": "Maintaining this performance is critical to overall profits.",
                "action": "Monitor competitor pricing and ensure product quality and availability.",
            }
        )

    if not recommendations:
        recommendations.append(
            {
                "type": "monitor",
                "title": "Monitor Performance",
                "description": "This product is performing within expected ranges.",
                "impact": "No immediate pricing change is indicated.",
                "action": "Review again after the next sales cycle.",
            }
        )

    return recommendations
