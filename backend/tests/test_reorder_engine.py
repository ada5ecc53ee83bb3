"""
Reorder Engine Integration Tests — full cycle against a seeded tenant.
"""

import uuid
from datetime import timezone

import pytest
from sqlalchemy import func, select

from core.errors import InvalidSettingsError, PersistenceError
from db.models import AiRecommendation, Customer, Product
from inventory.engine import ReorderEngine


async def _statuses(db):
    result = await db.execute(select(Product.sku, Product.status))
    return dict(result.all())


async def _event_count(db):
    return (await db.execute(select(func.count()).select_from(AiRecommendation))).scalar_one()


class TestEvaluate:
    async def test_recommendations_ranked(self, test_db, seeded_db):
        *_, recs = await ReorderEngine(test_db).evaluate(seeded_db["customer_id"], seeded_db["now"])
        assert [r.sku for r in recs] == ["SKU-FAST", "SKU-THIN", "SKU-GONE", "SKU-IDLE"]

        fast, thin, gone, idle = recs
        assert (fast.priority, fast.estimated_days_until_stockout, fast.recommended_quantity) == ("high", 5.0, 80)
        assert (thin.priority, thin.estimated_days_until_stockout, thin.recommended_quantity) == ("high", 6.0, 24)
        assert thin.below_margin_floor is True
        assert gone.recommended_quantity == 0
        assert idle.profit_margin is None

    async def test_cancelled_orders_excluded(self, test_db, seeded_db):
        orders = await ReorderEngine(test_db).load_orders(seeded_db["customer_id"])
        assert len(orders) == 10
        assert "ORD-X0" not in {o["order_number"] for o in orders}

    async def test_policy_loaded_from_settings_row(self, test_db, seeded_db):
        policy = await ReorderEngine(test_db).load_policy(seeded_db["customer_id"])
        assert policy.auto_reorder_enabled is True
        assert policy.label_cost == 2.25

    async def test_invalid_settings_row(self, test_db, seeded_db):
        seeded_db["settings"].minimum_profit_margin = 150
        await test_db.commit()
        with pytest.raises(InvalidSettingsError) as exc_info:
            await ReorderEngine(test_db).load_policy(seeded_db["customer_id"])
        assert exc_info.value.customer_id == str(seeded_db["customer_id"])


class TestRunCycle:
    async def test_cycle_updates_statuses_and_emits_events(self, test_db, seeded_db):
        result = await ReorderEngine(test_db).run_cycle(seeded_db["customer_id"], as_of=seeded_db["now"])

        assert result.product_count == 4
        assert result.order_count == 10
        assert {u.sku for u in result.status_updates} == {"SKU-THIN", "SKU-GONE"}
        assert result.status_updates_applied == 2
        assert result.auto_reorder.triggered == [str(seeded_db["products"]["SKU-FAST"].product_id)]
        assert result.auto_reorder.declined == 3
        assert result.auto_reorder.partial_failure is False

        statuses = await _statuses(test_db)
        assert statuses == {
            "SKU-FAST": "active",
            "SKU-THIN": "low_stock",
            "SKU-IDLE": "active",
            "SKU-GONE": "out_of_stock",
        }

        events = (await test_db.execute(select(AiRecommendation))).scalars().all()
        assert len(events) == 1
        event = events[0]
        assert event.type == "reorder"
        assert event.status == "open"
        assert event.recommendation == "Reorder 80 units of Fast Mover"
        assert event.impact_analysis == {
            "current_profit": 360.0,
            "projected_profit": 480.0,
            "confidence_score": 0.8,
        }

    async def test_second_run_changes_no_statuses(self, test_db, seeded_db):
        engine = ReorderEngine(test_db)
        first = await engine.run_cycle(seeded_db["customer_id"], as_of=seeded_db["now"])
        second = await engine.run_cycle(seeded_db["customer_id"], as_of=seeded_db["now"])

        assert second.status_updates == []
        assert second.status_updates_applied == 0
        assert [r.to_dict() for r in second.recommendations] == [r.to_dict() for r in first.recommendations]

    async def test_dry_run_writes_nothing(self, test_db, seeded_db):
        result = await ReorderEngine(test_db).run_cycle(seeded_db["customer_id"], as_of=seeded_db["now"], dry_run=True)

        assert len(result.status_updates) == 2
        assert result.status_updates_applied == 0
        assert result.auto_reorder.triggered == []
        assert (await _statuses(test_db))["SKU-THIN"] == "active"
        assert await _event_count(test_db) == 0

    async def test_disabled_tenant_emits_no_events(self, test_db, seeded_db):
        seeded_db["settings"].auto_reorder_enabled = False
        await test_db.commit()

        result = await ReorderEngine(test_db).run_cycle(seeded_db["customer_id"], as_of=seeded_db["now"])
        assert result.auto_reorder.triggered == []
        assert result.status_updates_applied == 2
        assert await _event_count(test_db) == 0

    async def test_stop_before_writes(self, test_db, seeded_db):
        result = await ReorderEngine(test_db).run_cycle(
            seeded_db["customer_id"],
            as_of=seeded_db["now"],
            should_stop=lambda: True,
        )
        assert result.stopped_early is True
        assert result.status_updates_applied == 0
        assert (await _statuses(test_db))["SKU-GONE"] == "active"
        assert await _event_count(test_db) == 0

    async def test_tenant_without_products(self, test_db):
        customer_id = uuid.uuid4()
        test_db.add(Customer(customer_id=customer_id, name="Empty", email="empty@seller.test"))
        await test_db.commit()

        result = await ReorderEngine(test_db).run_cycle(customer_id)
        assert result.product_count == 0
        assert result.recommendations == []
        assert result.summary()["actionable"] == 0

    async def test_accepts_string_customer_id(self, test_db, seeded_db):
        result = await ReorderEngine(test_db).run_cycle(str(seeded_db["customer_id"]), dry_run=True)
        assert result.customer_id == str(seeded_db["customer_id"])

    async def test_aware_as_of_matches_naive(self, test_db, seeded_db):
        engine = ReorderEngine(test_db)
        naive = await engine.run_cycle(seeded_db["customer_id"], as_of=seeded_db["now"], dry_run=True)
        aware = await engine.run_cycle(
            seeded_db["customer_id"], as_of=seeded_db["now"].replace(tzinfo=timezone.utc), dry_run=True
        )
        assert aware.evaluated_at == seeded_db["now"]
        assert aware.evaluated_at.tzinfo is None
        assert [r.to_dict() for r in aware.recommendations] == [r.to_dict() for r in naive.recommendations]


class TestEventWriter:
    async def test_failed_insert_is_isolated(self, test_db, seeded_db):
        customer_id = seeded_db["customer_id"]
        product_id = str(seeded_db["products"]["SKU-FAST"].product_id)
        write = ReorderEngine(test_db)._event_writer(customer_id)
        event = {
            "type": "reorder",
            "product_id": product_id,
            "recommendation": "Reorder 5 units of Fast Mover",
            "explanation": "Critical inventory level.",
            "suggested_action": "Place reorder",
            "impact_analysis": {},
        }

        with pytest.raises(PersistenceError) as exc_info:
            await write({**event, "type": "bogus"})  # violates ck_ai_recommendation_type
        assert exc_info.value.product_id == product_id

        await write(event)
        await test_db.commit()
        assert await _event_count(test_db) == 1

    async def test_invalid_product_id(self, test_db, seeded_db):
        write = ReorderEngine(test_db)._event_writer(seeded_db["customer_id"])
        with pytest.raises(PersistenceError):
            await write({"product_id": "not-a-uuid", "type": "reorder"})
