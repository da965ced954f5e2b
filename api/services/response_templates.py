"""
Deterministic, markdown-formatted chat answers.

These are built straight from the fetched data and are what the user sees
whenever the text-generation service is unavailable, so every intent has
one.
"""

from typing import Iterable, Optional, Sequence

QUOTA_MESSAGE = (
    "I'm sorry, the AI assistant is temporarily unavailable because its usage "
    "quota has been reached. You can still review phase spending, purchases and "
    "vendor reports from the dashboard, and I'll be back once the quota resets."
)

ERROR_MESSAGE = (
    "Sorry, something went wrong while answering that. Please try rephrasing "
    "your question or ask about a specific project, phase or vendor."
)

VENDOR_EMPTY_MESSAGE = (
    "No vendor spending data found in your system. Try adding some purchases "
    "with vendors first, then ask me again!"
)

EXAMPLE_QUESTIONS = (
    "What's the total spent on Grey phase?",
    "Show me cement purchases this month",
    "Compare Tech Plaza to Riverside Towers",
    "Show me vendor spending",
    "Give me all projects summary",
)


CURRENCY_SYMBOLS = {
    "USD": "$", "PKR": "Rs", "EUR": "€", "GBP": "£", "JPY": "¥", "CNY": "¥",
    "AUD": "A$", "CAD": "C$", "CHF": "CHF", "INR": "₹", "SGD": "S$", "HKD": "HK$",
    "KRW": "₩", "SEK": "kr", "NOK": "kr", "NZD": "NZ$", "MXN": "Mex$", "BRL": "R$",
    "ZAR": "R", "AED": "د.إ", "SAR": "﷼",
}


def currency_symbol(code: Optional[str]) -> str:
    """Display symbol for an ISO currency code; unknown codes fall back to "$"."""
    return CURRENCY_SYMBOLS.get((code or "").upper(), "$")


def money(value, symbol: str = "$") -> str:
    return f"{symbol}{float(value or 0):,.2f}"


def utilization_indicator(percent) -> str:
    pct = float(percent or 0)
    if pct > 90:
        return "🔴 High"
    if pct > 70:
        return "🟡 Moderate"
    return "🟢 Good"


def _bullets(names: Iterable[str]) -> str:
    return "\n".join(f"- {n}" for n in names)


def _alternatives(kind: str, available: Sequence[str]) -> str:
    if not available:
        return f"No {kind}s exist yet. Create one first, then ask me again."
    return f"Available {kind}s:\n{_bullets(available)}\n\nTry asking about one of these."


def _distinct(values: Iterable[str], limit: int) -> list[str]:
    seen: list[str] = []
    for v in values:
        if v not in seen:
            seen.append(v)
    return seen[:limit]


# ---------------------------------------------------------------------------
# Phase spending
# ---------------------------------------------------------------------------


def phase_spending(data: dict) -> str:
    budget = data["budget"]
    utilization = float(data["spent"]) / float(budget) * 100 if budget else 0.0
    return (
        f"**{data['phase_name']}** {utilization_indicator(utilization)}\n\n"
        f"- Budget: **{money(budget)}**\n"
        f"- Spent: **{money(data['spent'])}** ({utilization:.1f}%)\n"
        f"- Remaining: **{money(data['remaining'])}**\n"
        f"- Purchases: {data['purchase_count']}"
    )


def phase_not_found(phase_name: Optional[str], available: Sequence[str]) -> str:
    asked = f'a phase called "{phase_name}"' if phase_name else "which phase you meant"
    return f"I couldn't find {asked}.\n\n{_alternatives('phase', available)}"


# ---------------------------------------------------------------------------
# Item purchases
# ---------------------------------------------------------------------------


def item_purchases(
    item_name: Optional[str], current_month: bool, purchases: Sequence[dict], total
) -> str:
    period = "this month" if current_month else "all time"
    lines = [
        f"📦 **{len(purchases)} purchases** of {item_name or 'all items'} ({period}), "
        f"total **{money(total)}**",
        "",
    ]
    for p in purchases[:5]:
        lines.append(
            f"- **{p['item']}**: {p['quantity']} {p['unit']} × {money(p['price_per_unit'])} "
            f"= {money(p['total_cost'])} from {p['vendor']} ({p['project']})"
        )
    if len(purchases) > 5:
        lines.append(f"\n*...and {len(purchases) - 5} more purchases*")
    return "\n".join(lines)


def item_purchases_empty(item_name: Optional[str], current_month: bool) -> str:
    period = " this month" if current_month else ""
    return (
        f"No purchases found for {item_name or 'those items'}{period}. "
        "Check the item name or time period, or ask me to show all recent purchases."
    )


# ---------------------------------------------------------------------------
# Project comparison
# ---------------------------------------------------------------------------


def compare_needs_two_projects(available: Sequence[str]) -> str:
    if len(available) >= 2:
        example = f"Compare {available[0]} to {available[1]}"
        return (
            f'Please name two projects to compare, for example: "{example}".\n\n'
            f"{_alternatives('project', available)}"
        )
    return (
        "Comparisons need two projects. "
        + _alternatives("project", available)
    )


def compare_not_found(names: Sequence[str], available: Sequence[str]) -> str:
    wanted = " and ".join(f'"{n}"' for n in names)
    return (
        f"I couldn't find both of {wanted}.\n\n{_alternatives('project', available)}"
    )


def comparison(data: dict) -> str:
    p1, p2, diff = data["project1"], data["project2"], data["comparison"]
    bigger_budget = p1["name"] if diff["budget_difference"] > 0 else p2["name"]
    spent_more = p1["name"] if diff["spent_difference"] > 0 else p2["name"]
    more_efficient = p2["name"] if diff["efficiency_difference"] > 0 else p1["name"]

    sections = []
    for p in (p1, p2):
        sections.append(
            f"### {p['name']}\n"
            f"- Budget: **{money(p['budget'])}**\n"
            f"- Spent: **{money(p['spent'])}** ({p['percent_used']}%)\n"
            f"- Remaining: **{money(p['remaining'])}**\n"
            f"- Phases: {p['phase_count']}, Purchases: {p['purchase_count']}\n"
            f"- Status: {p['status']}"
        )
    sections.append(
        "### Key differences\n"
        f"- Budget: {money(abs(diff['budget_difference']))} ({bigger_budget} has more)\n"
        f"- Spending: {money(abs(diff['spent_difference']))} ({spent_more} spent more)\n"
        f"- Utilization: {abs(diff['efficiency_difference']):.1f}% apart "
        f"({more_efficient} has used less of its budget)"
    )
    return "\n\n".join(sections)


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------


def vendor_spending(vendors: Sequence[dict]) -> str:
    lines = ["## 📊 Vendor Spending Analysis", ""]
    for i, v in enumerate(vendors[:10], start=1):
        lines += [
            f"**{i}. {v['name']}**",
            f"- Total Spent: **{money(v['total_spent'])}**",
            f"- Purchases: {v['purchase_count']}",
            f"- Top Items: {', '.join(_distinct(v['items'], 3))}",
            "",
        ]
    if len(vendors) > 10:
        lines += [f"*...and {len(vendors) - 10} more vendors*", ""]
    total = sum(float(v["total_spent"]) for v in vendors)
    lines.append(f"**Total Vendor Spending: {money(total)}**")
    return "\n".join(lines)


def vendor_spending_empty(vendor_name: Optional[str], available: Sequence[str]) -> str:
    if vendor_name and available:
        return (
            f'{VENDOR_EMPTY_MESSAGE}\n\nI found no purchases for "{vendor_name}". '
            f"{_alternatives('vendor', available)}"
        )
    return VENDOR_EMPTY_MESSAGE


# ---------------------------------------------------------------------------
# Project summaries
# ---------------------------------------------------------------------------


def project_not_found(project_name: Optional[str], available: Sequence[str]) -> str:
    if project_name:
        return f'I couldn\'t find a project called "{project_name}".\n\n{_alternatives("project", available)}'
    return "No projects found yet. Create a project first and I can summarise it for you."


def project_summary(summary: dict) -> str:
    return (
        f"**{summary['name']}** {utilization_indicator(summary['percent_used'])}\n\n"
        f"- Budget: **{money(summary['budget'])}**\n"
        f"- Spent: **{money(summary['spent'])}** ({summary['percent_used']}%)\n"
        f"- Remaining: **{money(summary['remaining'])}**\n"
        f"- Phases: {summary['phase_count']}\n"
        f"- Status: {summary['status']}"
    )


def project_summaries(summaries: Sequence[dict]) -> str:
    lines = [f"Found {len(summaries)} projects", ""]
    for i, p in enumerate(summaries, start=1):
        lines.append(
            f"{i}. **{p['name']}** {utilization_indicator(p['percent_used'])}: "
            f"budget {money(p['budget'])}, spent {money(p['spent'])} ({p['percent_used']}%), "
            f"{p['phase_count']} phases, status {p['status']}"
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# General
# ---------------------------------------------------------------------------


def general_help() -> str:
    return (
        "I can help you with your construction costs:\n\n"
        "- Phase spending\n- Item purchase tracking\n- Project comparisons\n"
        "- Vendor spending analysis\n- Project summaries\n\n"
        f"Try asking:\n{_bullets(EXAMPLE_QUESTIONS[:3])}"
    )
