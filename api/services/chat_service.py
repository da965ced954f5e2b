"""
Chat fulfillment: parse a question, fetch the data, phrase the answer.

resolve_query() always returns an envelope
    {"message": str, "data": Any | None, "intent": str, "timestamp": ISO8601}
and never raises. Phrasing goes through the injected generation client; its
outcome is turned into a PhraseResult value once, and anything other than a
generated answer falls back to the deterministic template for the intent.
Quota exhaustion short-circuits to the "quota_error" envelope.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.models.phase import Phase
from api.models.project import Project
from api.models.vendor import Vendor
from api.services import cost_queries
from api.services import response_templates as templates
from api.services.ai_client import GeminiClient, GenerationError, QuotaExhaustedError
from api.services.intent_parser import (
    COMPARE_PROJECTS,
    GENERAL,
    ITEM_PURCHASES,
    PHASE_SPENDING,
    PROJECT_SUMMARY,
    VENDOR_SPENDING,
    ParsedQuery,
    parse_query,
)

logger = structlog.get_logger()

QUOTA_ERROR = "quota_error"
ERROR = "error"
NOT_FOUND_LIST_LIMIT = 5

_OVERLOAD_MARKERS = ("high demand", "try your request again")


# ---------------------------------------------------------------------------
# Phrasing outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Generated:
    text: str


@dataclass(frozen=True)
class Fallback:
    reason: str


@dataclass(frozen=True)
class QuotaExhausted:
    pass


PhraseResult = Union[Generated, Fallback, QuotaExhausted]


@dataclass
class Draft:
    """What an intent handler hands back: the data, its templated answer,
    and (optionally) a prompt for the generation service."""

    data: Any
    fallback: str
    prompt: Optional[str] = None


def _envelope(message: str, data: Any, intent: str) -> dict:
    return {
        "message": message,
        "data": data,
        "intent": intent,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def _not_found_prompt(question: str, kind: str, wanted: str, available: list[str]) -> str:
    if available:
        listing = f"Available {kind}s are: {', '.join(available)}"
        step = f"2. Lists the available {kind}s as bullet points"
    else:
        listing = f"No {kind}s exist in the system yet."
        step = f"2. Suggests creating {kind}s first"
    return (
        f'User asked: "{question}" looking for {kind} "{wanted}".\n\n'
        f"We couldn't find it. {listing}\n\n"
        "Generate a friendly, helpful response that:\n"
        f'1. Confirms we couldn\'t find "{wanted}"\n'
        f"{step}\n"
        "3. Suggests they try one of the available options\n\n"
        "Keep it under 60 words and conversational."
    )


def _phase_prompt(data: dict) -> str:
    budget = data["budget"]
    utilization = float(data["spent"]) / float(budget) * 100 if budget else 0.0
    return (
        "You're analyzing construction phase spending. Generate a clear, professional response:\n\n"
        f"Phase: {data['phase_name']}\n"
        f"Budget: {templates.money(budget)}\n"
        f"Spent: {templates.money(data['spent'])}\n"
        f"Remaining: {templates.money(data['remaining'])}\n"
        f"Total Purchases: {data['purchase_count']}\n"
        f"Budget Utilization: {utilization:.1f}% ({templates.utilization_indicator(utilization)})\n\n"
        "Format requirements:\n"
        "- Start with phase name in bold\n"
        "- Show key numbers with $ signs formatted with commas\n"
        "- Add emoji indicator: 🟢 (good <70%), 🟡 (moderate 70-90%), 🔴 (high >90%)\n"
        "- Include brief insight about spending status\n"
        "- Keep under 80 words"
    )


def _purchases_prompt(parsed: ParsedQuery, purchases: list[dict], total) -> str:
    listing = "\n".join(
        f"• {p['item']}: {p['quantity']} {p['unit']} × {templates.money(p['price_per_unit'])} "
        f"= {templates.money(p['total_cost'])} - {p['vendor']} ({p['project']})"
        for p in purchases[:5]
    )
    more = f"\n...and {len(purchases) - 5} more purchases" if len(purchases) > 5 else ""
    return (
        "Analyze these construction purchase records:\n\n"
        f"Item: {parsed.item or 'Various items'}\n"
        f"Time Period: {'This month' if parsed.current_month else 'All time'}\n"
        f"Total Purchases: {len(purchases)}\n"
        f"Total Cost: {templates.money(total)}\n"
        f"Average Cost: {templates.money(float(total) / len(purchases))}\n\n"
        f"Top Purchases:\n{listing}{more}\n\n"
        "Format requirements:\n"
        "- Start with a summary line with total count and cost\n"
        "- List top 3-5 purchases with bullet points\n"
        "- Use markdown bold for totals and item names\n"
        "- Add a brief insight (e.g. top vendor, average cost trend)\n"
        "- Keep under 120 words"
    )


def _comparison_prompt(data: dict) -> str:
    def block(label: str, p: dict) -> str:
        return (
            f"{label}: {p['name']}\n"
            f"- Budget: {templates.money(p['budget'])}\n"
            f"- Spent: {templates.money(p['spent'])} ({p['percent_used']}%)\n"
            f"- Remaining: {templates.money(p['remaining'])}\n"
            f"- Phases: {p['phase_count']}, Purchases: {p['purchase_count']}\n"
            f"- Status: {p['status']}"
        )

    diff = data["comparison"]
    return (
        "Generate a detailed comparison analysis for these two construction projects:\n\n"
        f"{block('Project 1', data['project1'])}\n\n{block('Project 2', data['project2'])}\n\n"
        "Key Differences:\n"
        f"- Budget difference: {templates.money(abs(diff['budget_difference']))}\n"
        f"- Spending difference: {templates.money(abs(diff['spent_difference']))}\n"
        f"- Utilization difference: {abs(diff['efficiency_difference']):.1f}%\n\n"
        "Format with markdown headers, bullet points, bold numbers. Include insights. Under 200 words."
    )


def _vendors_prompt(vendors: list[dict]) -> str:
    listing = "\n".join(
        f"{i}. {v['name']}: {templates.money(v['total_spent'])} ({v['purchase_count']} purchases)"
        f" - Items: {', '.join(v['items'][:3])}"
        for i, v in enumerate(vendors[:5], start=1)
    )
    more = f"\n...and {len(vendors) - 5} more vendors" if len(vendors) > 5 else ""
    return (
        f"Generate a vendor spending analysis for:\n\n{listing}{more}\n\n"
        "Format with markdown, numbered list, bold for vendor names and amounts. Under 150 words."
    )


def _summaries_prompt(summaries: list[dict]) -> str:
    listing = "\n".join(
        f"{i}. {p['name']}: Budget {templates.money(p['budget'])}, Spent {templates.money(p['spent'])} "
        f"({p['percent_used']}%), {p['phase_count']} phases, Status: {p['status']}"
        for i, p in enumerate(summaries, start=1)
    )
    return (
        f"Generate a comprehensive summary for all construction projects:\n\n{listing}\n\n"
        "Format requirements:\n"
        '- Start with total count: "Found X projects"\n'
        "- Use a numbered list with bold project names\n"
        "- Add emoji status indicators (🟢 good, 🟡 moderate, 🔴 high)\n"
        "- Include a brief overall insight\n"
        "- Keep under 200 words"
    )


def _summary_prompt(summary: dict) -> str:
    return (
        "Generate a detailed project summary for:\n\n"
        f"Project: {summary['name']}\n"
        f"Budget: {templates.money(summary['budget'])}\n"
        f"Spent: {templates.money(summary['spent'])} ({summary['percent_used']}%)\n"
        f"Remaining: {templates.money(summary['remaining'])}\n"
        f"Phases: {summary['phase_count']}\n"
        f"Status: {summary['status']}\n"
        f"Budget Health: {templates.utilization_indicator(summary['percent_used'])}\n\n"
        "Start with the bold project name, show key metrics in bold, add an actionable "
        "insight. Keep under 100 words."
    )


def _general_prompt(question: str) -> str:
    examples = "\n".join(f"- {q}" for q in templates.EXAMPLE_QUESTIONS)
    return (
        "You are an AI assistant for a construction cost management system. "
        f'The user asked: "{question}"\n\n'
        "Available features:\n- Phase spending queries\n- Item purchase tracking\n"
        "- Project comparisons\n- Vendor spending analysis\n- Project summaries\n\n"
        f"Example questions:\n{examples}\n\n"
        "Answer helpfully, explain what you can help with and include 2-3 example "
        "questions. Under 100 words. Use markdown formatting."
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


Handler = Callable[[AsyncSession, str, ParsedQuery, str], Awaitable[Draft]]


class ChatService:
    def __init__(self, ai_client: Optional[GeminiClient] = None):
        self.ai_client = ai_client
        self._handlers: dict[str, Handler] = {
            PHASE_SPENDING: self._phase_spending,
            ITEM_PURCHASES: self._item_purchases,
            COMPARE_PROJECTS: self._compare_projects,
            VENDOR_SPENDING: self._vendor_spending,
            PROJECT_SUMMARY: self._project_summary,
            GENERAL: self._general,
        }

    async def resolve_query(self, db: AsyncSession, raw_text: str, company_id) -> dict:
        try:
            parsed = parse_query(raw_text)
            logger.info("chat_query_parsed", **parsed.as_dict())

            draft = await self._handlers[parsed.intent](db, company_id, parsed, raw_text)
            if draft.prompt is None:
                return _envelope(draft.fallback, draft.data, parsed.intent)

            outcome = await self._phrase(draft.prompt)
            if isinstance(outcome, QuotaExhausted):
                return _envelope(templates.QUOTA_MESSAGE, None, QUOTA_ERROR)
            if isinstance(outcome, Generated):
                return _envelope(outcome.text, draft.data, parsed.intent)
            return _envelope(draft.fallback, draft.data, parsed.intent)
        except Exception:
            logger.exception("chat_query_failed", query=raw_text)
            return _envelope(templates.ERROR_MESSAGE, None, ERROR)

    async def _phrase(self, prompt: str) -> PhraseResult:
        if self.ai_client is None:
            return Fallback("no_client")
        try:
            text = await self.ai_client.generate(prompt)
        except QuotaExhaustedError:
            return QuotaExhausted()
        except GenerationError as exc:
            logger.warning("ai_generation_fallback", error=type(exc).__name__, detail=str(exc))
            return Fallback(type(exc).__name__)
        except Exception as exc:
            logger.exception("ai_generation_unexpected_error")
            return Fallback(type(exc).__name__)

        lowered = text.lower()
        if any(marker in lowered for marker in _OVERLOAD_MARKERS):
            logger.warning("ai_generation_fallback", error="overloaded_reply")
            return Fallback("overloaded_reply")
        return Generated(text)

    # -- intent handlers ------------------------------------------------------

    async def _phase_spending(self, db, company_id, parsed: ParsedQuery, question: str) -> Draft:
        data = await cost_queries.get_phase_spending(db, company_id, parsed.phase)
        if data is None:
            available = await cost_queries.list_entity_names(
                db, Phase, company_id, NOT_FOUND_LIST_LIMIT
            )
            return Draft(
                data=None,
                fallback=templates.phase_not_found(parsed.phase, available),
                prompt=_not_found_prompt(question, "phase", parsed.phase or "", available),
            )
        return Draft(data=data, fallback=templates.phase_spending(data), prompt=_phase_prompt(data))

    async def _item_purchases(self, db, company_id, parsed: ParsedQuery, question: str) -> Draft:
        if parsed.current_month:
            purchases = await cost_queries.get_current_month_purchases(db, company_id, parsed.item)
        else:
            purchases = await cost_queries.get_item_purchases(db, company_id, parsed.item or "")
        total = sum(p["total_cost"] for p in purchases)
        data = {"purchases": purchases, "total": total}

        if not purchases:
            period = " this month" if parsed.current_month else ""
            return Draft(
                data=data,
                fallback=templates.item_purchases_empty(parsed.item, parsed.current_month),
                prompt=(
                    f'User asked: "{question}"\n\n'
                    f'No purchases found for "{parsed.item or "items"}"{period}.\n\n'
                    "Generate a helpful response: confirm no records were found, suggest "
                    "checking the item name or time period, and offer to show all recent "
                    "purchases. Keep it conversational and under 40 words."
                ),
            )
        return Draft(
            data=data,
            fallback=templates.item_purchases(parsed.item, parsed.current_month, purchases, total),
            prompt=_purchases_prompt(parsed, purchases, total),
        )

    async def _compare_projects(self, db, company_id, parsed: ParsedQuery, question: str) -> Draft:
        if len(parsed.projects) < 2:
            available = await cost_queries.list_entity_names(
                db, Project, company_id, NOT_FOUND_LIST_LIMIT
            )
            return Draft(
                data=None,
                fallback=templates.compare_needs_two_projects(available),
                prompt=_not_found_prompt(
                    question, "project", ", ".join(parsed.projects) or "two projects", available
                ),
            )

        name1, name2 = parsed.projects[0], parsed.projects[1]
        data = await cost_queries.compare_projects(db, company_id, name1, name2)
        if data is None:
            available = await cost_queries.list_entity_names(
                db, Project, company_id, NOT_FOUND_LIST_LIMIT
            )
            return Draft(
                data=None,
                fallback=templates.compare_not_found([name1, name2], available),
                prompt=_not_found_prompt(question, "project", f"{name1}, {name2}", available),
            )
        return Draft(data=data, fallback=templates.comparison(data), prompt=_comparison_prompt(data))

    async def _vendor_spending(self, db, company_id, parsed: ParsedQuery, question: str) -> Draft:
        vendors = await cost_queries.get_vendor_spending(db, company_id, parsed.vendor)
        if not vendors:
            available = []
            if parsed.vendor:
                available = await cost_queries.list_entity_names(
                    db, Vendor, company_id, NOT_FOUND_LIST_LIMIT
                )
            return Draft(data=vendors, fallback=templates.vendor_spending_empty(parsed.vendor, available))
        return Draft(
            data=vendors,
            fallback=templates.vendor_spending(vendors),
            prompt=_vendors_prompt(vendors),
        )

    async def _project_summary(self, db, company_id, parsed: ParsedQuery, question: str) -> Draft:
        summary = await cost_queries.get_project_summary(db, company_id, parsed.project)
        if not summary:
            available = await cost_queries.list_entity_names(
                db, Project, company_id, NOT_FOUND_LIST_LIMIT
            )
            return Draft(
                data=summary,
                fallback=templates.project_not_found(parsed.project, available),
                prompt=_not_found_prompt(question, "project", parsed.project or "any project", available),
            )
        if isinstance(summary, list):
            return Draft(
                data=summary,
                fallback=templates.project_summaries(summary),
                prompt=_summaries_prompt(summary),
            )
        return Draft(data=summary, fallback=templates.project_summary(summary), prompt=_summary_prompt(summary))

    async def _general(self, db, company_id, parsed: ParsedQuery, question: str) -> Draft:
        return Draft(data=None, fallback=templates.general_help(), prompt=_general_prompt(question))


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


async def build_suggestions(db: AsyncSession, company_id) -> dict:
    """Example prompts built from the company's own projects, phases, vendors and items."""
    projects = await cost_queries.list_entity_names(db, Project, company_id, 3)
    phases = await cost_queries.list_entity_names(db, Phase, company_id, 3)
    vendors = await cost_queries.list_entity_names(db, Vendor, company_id, 3)
    items = await cost_queries.list_recent_item_names(db, company_id, 3)

    def prompt(text: str, query: Optional[str] = None) -> dict:
        return {"text": text, "query": query or text}

    suggestions = []
    if phases:
        suggestions.append({
            "category": "Phase Spending",
            "icon": "📊",
            "prompts": [prompt(f"What's the total spent on {p}?") for p in phases],
        })
    if items:
        suggestions.append({
            "category": "Item Purchases",
            "icon": "📦",
            "prompts": [prompt(f"Show me {i} purchases this month") for i in items],
        })
    if len(projects) >= 2:
        suggestions.append({
            "category": "Project Comparison",
            "icon": "⚖️",
            "prompts": [prompt(f"Compare {projects[0]} to {projects[1]}")],
        })
    if vendors:
        suggestions.append({
            "category": "Vendor Analysis",
            "icon": "🏢",
            "prompts": [prompt("Show me top vendor spending", "Show me vendor spending")]
            + [
                prompt(f"How much did we spend with {v}?", f"Show me vendor {v} spending")
                for v in vendors[:2]
            ],
        })
    if projects:
        suggestions.append({
            "category": "Project Overview",
            "icon": "📋",
            "prompts": [prompt("Give me all projects summary")]
            + [
                prompt(f"What's the status of {p}?", f"Give me {p} project summary")
                for p in projects[:2]
            ],
        })

    return {
        "suggestions": suggestions,
        "stats": {
            "project_count": len(projects),
            "phase_count": len(phases),
            "vendor_count": len(vendors),
            "item_count": len(items),
        },
    }
