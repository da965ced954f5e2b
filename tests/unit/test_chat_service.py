"""
Unit tests for api/services/chat_service.py

The dispatcher runs against the seeded demo company with a fake generation
client, so every branch (generated, fallback, quota, not found, error) is
exercised without network access.
"""

import uuid
from datetime import datetime

import pytest

from api.services import response_templates as templates
from api.services.ai_client import GenerationError, QuotaExhaustedError, RateLimitedError
from api.services.chat_service import (
    ChatService,
    Fallback,
    Generated,
    QuotaExhausted,
    build_suggestions,
)
from scripts.seed import DEMO_COMPANY_ID


# ---------------------------------------------------------------------------
# Phrasing outcome
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_phrase_generated(fake_ai):
    fake_ai.reply = "All good"
    assert await ChatService(fake_ai)._phrase("prompt") == Generated("All good")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        (QuotaExhaustedError("quota"), QuotaExhausted()),
        (RateLimitedError("slow down"), Fallback("RateLimitedError")),
        (GenerationError("boom"), Fallback("GenerationError")),
        (RuntimeError("unexpected"), Fallback("RuntimeError")),
    ],
)
async def test_phrase_failures(fake_ai, error, expected):
    fake_ai.error = error
    assert await ChatService(fake_ai)._phrase("prompt") == expected


@pytest.mark.asyncio
async def test_phrase_overload_reply_is_fallback(fake_ai):
    fake_ai.reply = "The model is experiencing High Demand. Please try your request again later."
    assert isinstance(await ChatService(fake_ai)._phrase("prompt"), Fallback)


@pytest.mark.asyncio
async def test_phrase_without_client_is_fallback():
    assert await ChatService(None)._phrase("prompt") == Fallback("no_client")


# ---------------------------------------------------------------------------
# resolve_query
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_phase_spending_generated(db, demo, fake_ai):
    fake_ai.reply = "**Grey** is at 65% of budget."
    envelope = await ChatService(fake_ai).resolve_query(
        db, "What's the total spent on Grey phase?", DEMO_COMPANY_ID
    )
    assert envelope["intent"] == "phase_spending"
    assert envelope["message"] == "**Grey** is at 65% of budget."
    assert envelope["data"]["phase_name"] == "Grey"
    assert envelope["data"]["budget"] == 100000
    assert envelope["data"]["spent"] == 65000
    assert envelope["data"]["remaining"] == 35000
    assert "$65,000.00" in fake_ai.prompts[0]
    assert datetime.fromisoformat(envelope["timestamp"]).tzinfo is not None


@pytest.mark.asyncio
async def test_phase_spending_fallback_uses_template(db, demo, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(
        db, "What's the total spent on Grey phase?", DEMO_COMPANY_ID
    )
    assert envelope["intent"] == "phase_spending"
    assert envelope["message"] == templates.phase_spending(envelope["data"])


@pytest.mark.asyncio
async def test_phase_not_found_lists_known_phases(db, demo, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(
        db, "What's the total spent on Roofing phase?", DEMO_COMPANY_ID
    )
    assert envelope["intent"] == "phase_spending"
    assert envelope["data"] is None
    assert "Roofing" in envelope["message"]
    for name in ("Grey", "Finishing", "Foundation"):
        assert f"- {name}" in envelope["message"]


@pytest.mark.asyncio
async def test_quota_exhausted_envelope(db, demo, fake_ai):
    fake_ai.error = QuotaExhaustedError("limit: 0")
    envelope = await ChatService(fake_ai).resolve_query(
        db, "What's the total spent on Grey phase?", DEMO_COMPANY_ID
    )
    assert envelope["intent"] == "quota_error"
    assert envelope["message"] == templates.QUOTA_MESSAGE
    assert envelope["data"] is None


@pytest.mark.asyncio
async def test_item_purchases_this_month(db, demo, fake_ai):
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Show me cement purchases this month", DEMO_COMPANY_ID
    )
    assert envelope["intent"] == "item_purchases"
    assert len(envelope["data"]["purchases"]) == 1
    assert envelope["data"]["total"] == 40000
    assert "This month" in fake_ai.prompts[0]


@pytest.mark.asyncio
async def test_item_purchases_none_found(db, demo, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Show me glass purchases", DEMO_COMPANY_ID
    )
    assert envelope["data"] == {"purchases": [], "total": 0}
    assert envelope["message"] == templates.item_purchases_empty("glass", False)


@pytest.mark.asyncio
async def test_compare_needs_two_projects(db, demo, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(db, "Compare Tech Plaza", DEMO_COMPANY_ID)
    assert envelope["intent"] == "compare_projects"
    assert envelope["data"] is None
    assert "Harbor Depot" in envelope["message"]
    assert '"Compare Tech Plaza to Riverside Towers"' in envelope["message"]


@pytest.mark.asyncio
async def test_compare_needs_two_projects_prompt_lists_company_projects(db, demo, fake_ai):
    await ChatService(fake_ai).resolve_query(db, "compare projects", DEMO_COMPANY_ID)
    assert "Harbor Depot" in fake_ai.prompts[-1]


@pytest.mark.asyncio
async def test_compare_needs_two_projects_uses_own_company_names(db, other_company, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(
        db, "compare projects", other_company["company"].id
    )
    assert "Riverside Towers" not in envelope["message"]
    assert "- Tech Plaza" in envelope["message"]


@pytest.mark.asyncio
async def test_compare_projects_found(db, demo, fake_ai):
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Compare Tech Plaza to Riverside Towers", DEMO_COMPANY_ID
    )
    assert envelope["intent"] == "compare_projects"
    assert envelope["data"]["project1"]["name"] == "Tech Plaza"
    assert envelope["data"]["project2"]["name"] == "Riverside Towers"


@pytest.mark.asyncio
async def test_compare_projects_missing_target(db, demo, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Compare Tech Plaza to Atlantis", DEMO_COMPANY_ID
    )
    assert envelope["data"] is None
    assert '"Atlantis"' in envelope["message"]
    assert "- Riverside Towers" in envelope["message"]


@pytest.mark.asyncio
async def test_vendor_spending_empty_skips_generation(db, fake_ai):
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Show me vendor spending", uuid.uuid4()
    )
    assert envelope["intent"] == "vendor_spending"
    assert envelope["data"] == []
    assert envelope["message"] == templates.VENDOR_EMPTY_MESSAGE
    assert fake_ai.prompts == []


@pytest.mark.asyncio
async def test_vendor_spending_generated(db, demo, fake_ai):
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Show me vendor spending", DEMO_COMPANY_ID
    )
    assert envelope["message"] == fake_ai.reply
    assert [v["name"] for v in envelope["data"]][0] == "BuildCo Supplies"


@pytest.mark.asyncio
async def test_all_projects_summary(db, demo, fake_ai):
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Give me all projects summary", DEMO_COMPANY_ID
    )
    assert envelope["intent"] == "project_summary"
    assert len(envelope["data"]) == 3
    assert "Found X projects" in fake_ai.prompts[0]


@pytest.mark.asyncio
async def test_single_project_summary_fallback(db, demo, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(
        db, "Give me Harbor Depot project summary", DEMO_COMPANY_ID
    )
    assert envelope["data"]["name"] == "Harbor Depot"
    assert envelope["data"]["percent_used"] == "0.0"
    assert envelope["message"] == templates.project_summary(envelope["data"])


@pytest.mark.asyncio
async def test_general_question(db, fake_ai):
    fake_ai.error = GenerationError("service down")
    envelope = await ChatService(fake_ai).resolve_query(db, "Hello there", DEMO_COMPANY_ID)
    assert envelope["intent"] == "general"
    assert envelope["data"] is None
    assert envelope["message"] == templates.general_help()


@pytest.mark.asyncio
async def test_unexpected_failure_returns_error_envelope(db, fake_ai):
    envelope = await ChatService(fake_ai).resolve_query(
        db, "What's the total spent on Grey phase?", "not-a-uuid"
    )
    assert envelope["intent"] == "error"
    assert envelope["message"] == templates.ERROR_MESSAGE
    assert envelope["data"] is None


# ---------------------------------------------------------------------------
# build_suggestions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_suggestions_from_company_data(db, demo):
    result = await build_suggestions(db, DEMO_COMPANY_ID)
    assert result["stats"] == {
        "project_count": 3,
        "phase_count": 3,
        "vendor_count": 3,
        "item_count": 3,
    }
    categories = {s["category"]: s for s in result["suggestions"]}
    assert categories["Project Comparison"]["prompts"][0]["text"] == (
        "Compare Tech Plaza to Riverside Towers"
    )
    assert categories["Phase Spending"]["prompts"][0]["query"] == "What's the total spent on Grey?"


@pytest.mark.asyncio
async def test_suggestions_empty_company(db):
    result = await build_suggestions(db, uuid.uuid4())
    assert result["suggestions"] == []
    assert result["stats"]["project_count"] == 0
