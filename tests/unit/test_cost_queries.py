"""
Unit tests for api/services/cost_queries.py

Runs against the seeded demo company in an in-memory SQLite database.
Tests: phase spending, item purchases, project comparison and summaries,
vendor spending, name resolution and company scoping.
"""

import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from api.models.phase import Phase
from api.models.project import Project
from api.models.purchase import Purchase, compute_total_cost
from api.services import cost_queries
from scripts.seed import DEMO_COMPANY_ID


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_percent_used_one_decimal():
    assert cost_queries.percent_used(65000, 100000) == "65.0"
    assert cost_queries.percent_used(1, 3) == "33.3"


def test_percent_used_zero_budget():
    assert cost_queries.percent_used(500, 0) == "0.0"
    assert cost_queries.percent_used(0, None) == "0.0"


def test_current_month_window():
    start, end = cost_queries.current_month_window(datetime(2026, 2, 14, 10, 30))
    assert start == datetime(2026, 2, 1)
    assert end.date() == datetime(2026, 2, 28).date()
    assert end.hour == 23


def test_compute_total_cost():
    assert compute_total_cost(10, 5) == Decimal("50")
    assert compute_total_cost(2.5, 4) == Decimal("10.0")


@pytest.mark.asyncio
async def test_purchase_total_cost_derived_on_insert(db, demo):
    purchase = Purchase(
        company_id=DEMO_COMPANY_ID,
        item_id=demo["items"]["Cement"].id,
        category_id=demo["categories"]["Structural Materials"].id,
        phase_id=demo["phases"]["Grey"].id,
        project_id=demo["projects"]["Tech Plaza"].id,
        quantity=10,
        price_per_unit=5,
    )
    db.add(purchase)
    await db.flush()
    assert purchase.total_cost == 50


@pytest.mark.asyncio
async def test_list_entity_names_oldest_first(db, demo):
    names = await cost_queries.list_entity_names(db, Project, DEMO_COMPANY_ID)
    assert names == ["Tech Plaza", "Riverside Towers", "Harbor Depot"]
    assert await cost_queries.list_entity_names(db, Project, DEMO_COMPANY_ID, limit=1) == ["Tech Plaza"]


# ---------------------------------------------------------------------------
# get_phase_spending
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_phase_spending_grey(db, demo):
    result = await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "Grey")
    assert result == {
        "phase_name": "Grey",
        "budget": 100000,
        "spent": 65000,
        "remaining": 35000,
        "purchase_count": 2,
    }


@pytest.mark.asyncio
async def test_phase_spending_is_idempotent(db, demo):
    first = await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "grey")
    second = await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "grey")
    assert first == second


@pytest.mark.asyncio
async def test_phase_spending_accepts_string_company_id(db, demo):
    result = await cost_queries.get_phase_spending(db, str(DEMO_COMPANY_ID), "Grey")
    assert result["spent"] == 65000


@pytest.mark.asyncio
async def test_phase_spending_substring_match(db, demo):
    result = await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "finish")
    assert result["phase_name"] == "Finishing"
    assert result["spent"] == 4500
    assert result["remaining"] == result["budget"] - result["spent"]


@pytest.mark.asyncio
async def test_phase_spending_prefers_exact_match(db, demo):
    db.add(Phase(
        company_id=DEMO_COMPANY_ID,
        project_id=demo["projects"]["Tech Plaza"].id,
        name="Grey Extension",
        budget=1,
        created_at=datetime(2025, 1, 1),
    ))
    await db.flush()
    result = await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "grey")
    assert result["phase_name"] == "Grey"


@pytest.mark.asyncio
async def test_phase_spending_scoped_to_project(db, demo):
    riverside = demo["projects"]["Riverside Towers"]
    assert await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "Grey", riverside.id) is None
    result = await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "Foundation", riverside.id)
    assert result["spent"] == 42000


@pytest.mark.asyncio
async def test_phase_spending_unknown_phase(db, demo):
    assert await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, "Roofing") is None
    assert await cost_queries.get_phase_spending(db, DEMO_COMPANY_ID, None) is None


@pytest.mark.asyncio
async def test_phase_spending_ignores_other_company(db, demo, other_company):
    result = await cost_queries.get_phase_spending(db, other_company["company"].id, "Grey")
    assert result["budget"] == 10
    assert result["spent"] == 1000
    assert result["purchase_count"] == 1


# ---------------------------------------------------------------------------
# get_item_purchases
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_item_purchases_all_time(db, demo):
    rows = await cost_queries.get_item_purchases(db, DEMO_COMPANY_ID, "cement")
    assert len(rows) == 2
    assert {r["project"] for r in rows} == {"Tech Plaza", "Riverside Towers"}
    assert rows[0]["date"] >= rows[1]["date"]
    assert sum(r["total_cost"] for r in rows) == 48000
    assert all(r["unit"] == "bag" for r in rows)


@pytest.mark.asyncio
async def test_item_purchases_unknown_vendor_label(db, demo):
    rows = await cost_queries.get_item_purchases(db, DEMO_COMPANY_ID, "rebar")
    assert {r["vendor"] for r in rows} == {"Steel Masters", "Unknown"}


@pytest.mark.asyncio
async def test_item_purchases_like_wildcards_are_literal(db, demo):
    assert await cost_queries.get_item_purchases(db, DEMO_COMPANY_ID, "%") == []
    assert await cost_queries.get_item_purchases(db, DEMO_COMPANY_ID, "_") == []


@pytest.mark.asyncio
async def test_current_month_purchases(db, demo):
    rows = await cost_queries.get_current_month_purchases(db, DEMO_COMPANY_ID, "cement")
    assert len(rows) == 1
    assert rows[0]["total_cost"] == 40000
    assert rows[0]["vendor"] == "BuildCo Supplies"


# ---------------------------------------------------------------------------
# compare_projects / get_project_summary
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_compare_projects(db, demo):
    result = await cost_queries.compare_projects(db, DEMO_COMPANY_ID, "Tech Plaza", "riverside")
    p1, p2 = result["project1"], result["project2"]
    assert p1["name"] == "Tech Plaza"
    assert p1["spent"] == 69500
    assert p1["percent_used"] == "13.9"
    assert p1["phase_count"] == 2
    assert p2["name"] == "Riverside Towers"
    assert p2["percent_used"] == "14.0"
    assert p2["purchase_count"] == 3
    assert result["comparison"]["budget_difference"] == 200000
    assert result["comparison"]["spent_difference"] == 27500
    assert result["comparison"]["efficiency_difference"] == -0.1


@pytest.mark.asyncio
async def test_compare_projects_missing_project(db, demo):
    assert await cost_queries.compare_projects(db, DEMO_COMPANY_ID, "Tech Plaza", "Atlantis") is None


@pytest.mark.asyncio
async def test_project_summary_zero_budget(db, demo):
    summary = await cost_queries.get_project_summary(db, DEMO_COMPANY_ID, "Harbor Depot")
    assert summary["percent_used"] == "0.0"
    assert summary["spent"] == 0
    assert summary["remaining"] == 0
    assert summary["status"] == "starting_soon"


@pytest.mark.asyncio
async def test_project_summary_list(db, demo):
    summaries = await cost_queries.get_project_summary(db, DEMO_COMPANY_ID)
    assert [s["name"] for s in summaries] == ["Tech Plaza", "Riverside Towers", "Harbor Depot"]
    for s in summaries:
        assert s["remaining"] == s["budget"] - s["spent"]


@pytest.mark.asyncio
async def test_project_summary_unknown(db, demo):
    assert await cost_queries.get_project_summary(db, DEMO_COMPANY_ID, "Atlantis") is None


@pytest.mark.asyncio
async def test_project_summary_list_empty_company(db):
    assert await cost_queries.get_project_summary(db, uuid.uuid4()) == []


# ---------------------------------------------------------------------------
# get_vendor_spending
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_vendor_spending_sorted_by_total(db, demo, other_company):
    vendors = await cost_queries.get_vendor_spending(db, DEMO_COMPANY_ID)
    assert [v["name"] for v in vendors] == ["BuildCo Supplies", "Steel Masters", "ColorCraft Paints"]
    buildco = vendors[0]
    assert buildco["total_spent"] == 72000
    assert buildco["purchase_count"] == 3
    assert sorted(buildco["items"]) == ["Cement", "Ready-Mix Concrete"]


@pytest.mark.asyncio
async def test_vendor_spending_by_name(db, demo):
    vendors = await cost_queries.get_vendor_spending(db, DEMO_COMPANY_ID, "steel")
    assert len(vendors) == 1
    assert vendors[0]["name"] == "Steel Masters"
    assert vendors[0]["items"] == ["Steel Rebar"]


@pytest.mark.asyncio
async def test_vendor_spending_by_project(db, demo):
    vendors = await cost_queries.get_vendor_spending(
        db, DEMO_COMPANY_ID, project_id=demo["projects"]["Riverside Towers"].id
    )
    assert [v["name"] for v in vendors] == ["BuildCo Supplies"]
    assert vendors[0]["total_spent"] == 32000


@pytest.mark.asyncio
async def test_vendor_spending_empty(db):
    assert await cost_queries.get_vendor_spending(db, DEMO_COMPANY_ID) == []


@pytest.mark.asyncio
async def test_recent_item_names(db, demo):
    names = await cost_queries.list_recent_item_names(db, DEMO_COMPANY_ID, 3)
    assert names == ["Cement", "Interior Paint", "Steel Rebar"]
