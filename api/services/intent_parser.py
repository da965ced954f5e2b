"""
Intent parser for the cost chat.

Turns a free-text question into a ParsedQuery: which canned data query to run
and with which parameters. Classification is keyword/regex based and runs an
ordered rule table; the first rule whose predicate matches wins, so the order
of INTENT_RULES is part of the behaviour.

    phase_spending   "What's the total spent on Grey phase?"
    item_purchases   "Show me cement purchases this month"
    compare_projects "Compare Tech Plaza to Riverside Towers"
    vendor_spending  "Show me vendor BuildCo spending"
    project_summary  "Give me all projects summary"
    general          anything else (answered free-form)
"""

import re
from dataclasses import asdict, dataclass, field
from typing import Callable, List, Optional, Tuple

PHASE_SPENDING = "phase_spending"
ITEM_PURCHASES = "item_purchases"
COMPARE_PROJECTS = "compare_projects"
VENDOR_SPENDING = "vendor_spending"
PROJECT_SUMMARY = "project_summary"
GENERAL = "general"

SPEND_TERMS = ("spent", "cost", "budget", "total")
PHASE_TERMS = (
    "phase", "on ", "grey", "gray", "foundation", "structure",
    "finishing", "electrical", "plumbing",
)
ACTION_TERMS = ("show", "list", "get")
PURCHASE_TERMS = ("purchase", "buy", "bought")
SUMMARY_TERMS = ("summary", "status", "overview", "give me", "show me", "list")

KNOWN_ITEMS = (
    "cement", "concrete", "steel", "brick", "paint", "wire", "pipe", "lumber",
    "sand", "gravel", "rebar", "tile", "glass", "wood", "metal",
)

_PHASE_NAME_PATTERNS = (
    re.compile(r"(?:spent|cost|budget|total)\s+on\s+([A-Za-z0-9\s]+?)(?:\?|$|phase)", re.I),
    re.compile(r"phase\s+(\d+|one|two|three|four|five)", re.I),
    re.compile(r"(grey|gray|foundation|structure|electrical|plumbing|finishing|framing|roofing)", re.I),
    re.compile(r"on\s+([A-Za-z]+(?:\s+[A-Za-z]+)?)\s*(?:\?|$)", re.I),
    # last resort: the last word before trailing punctuation
    re.compile(r"\s+([A-Za-z]+)\s*\??$", re.I),
)

_ITEM_NAME_PATTERNS = (
    re.compile(r"(" + "|".join(KNOWN_ITEMS) + r")", re.I),
    re.compile(r"show\s+(?:me\s+)?([A-Za-z]+)\s+purchase", re.I),
)

_COMPARE_PAIR = re.compile(
    r"compare\s+([A-Za-z0-9\s\-]+?)\s+(?:to|with|and)\s+([A-Za-z0-9\s\-]+?)\s*[?.!]*\s*$",
    re.I,
)
_PROJECT_MENTION = re.compile(r"project\s+([A-Za-z0-9]+)", re.I)

_VENDOR_NAME = re.compile(
    r"vendors?\s+(?!(?:spend|spending|spent|cost|costs|analysis|summary)\b)"
    r"([A-Za-z0-9&][A-Za-z0-9\s&]*?)"
    r"(?:\s+(?:spend|spending|spent|cost|costs)\b|\?|$)",
    re.I,
)

_ALL_PROJECTS = re.compile(r"^(give|show|list)\s+(me\s+)?all", re.I)
_PROJECT_NAME_PATTERNS = (
    re.compile(r"(?:project|of)\s+([A-Za-z0-9\-\s]+?)(?:\s+project)?\s+(?:summary|status)", re.I),
    re.compile(r"give\s+me\s+([A-Za-z0-9\-\s]+?)\s+project", re.I),
    re.compile(r"show\s+me\s+([A-Za-z0-9\-\s]+?)\s+project", re.I),
    re.compile(
        r"(?:status|summary|overview)\s+(?:of|for)\s+(?:project\s+)?"
        r"([A-Za-z0-9\-\s]+?)(?:\s+project)?\s*[?.!]*\s*$",
        re.I,
    ),
)


@dataclass
class ParsedQuery:
    intent: str
    phase: Optional[str] = None
    item: Optional[str] = None
    current_month: bool = False
    projects: List[str] = field(default_factory=list)
    vendor: Optional[str] = None
    project: Optional[str] = None
    query: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class IntentRule:
    intent: str
    matches: Callable[[str], bool]
    extract: Callable[[str], ParsedQuery]


def _has_any(text: str, terms: Tuple[str, ...]) -> bool:
    return any(t in text for t in terms)


def _first_capture(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1) and match.group(1).strip():
            return match.group(1).strip()
    return None


# ---------------------------------------------------------------------------
# Extractors (receive the original-case query)
# ---------------------------------------------------------------------------


def _extract_phase(query: str) -> ParsedQuery:
    return ParsedQuery(intent=PHASE_SPENDING, phase=_first_capture(_PHASE_NAME_PATTERNS, query))


def _extract_item(query: str) -> ParsedQuery:
    return ParsedQuery(
        intent=ITEM_PURCHASES,
        item=_first_capture(_ITEM_NAME_PATTERNS, query),
        current_month="month" in query.lower(),
    )


def _extract_projects(query: str) -> ParsedQuery:
    pair = _COMPARE_PAIR.search(query)
    if pair:
        projects = [pair.group(1).strip(), pair.group(2).strip()]
    else:
        projects = [m.group(1) for m in _PROJECT_MENTION.finditer(query)]
    return ParsedQuery(intent=COMPARE_PROJECTS, projects=projects)


def _extract_vendor(query: str) -> ParsedQuery:
    return ParsedQuery(intent=VENDOR_SPENDING, vendor=_first_capture((_VENDOR_NAME,), query))


def _extract_all_vendors(query: str) -> ParsedQuery:
    return ParsedQuery(intent=VENDOR_SPENDING, vendor=None)


def _asks_for_all_projects(lower: str) -> bool:
    return (
        "all projects" in lower
        or "all project" in lower
        or ("give" in lower and "projects" in lower)
        or bool(_ALL_PROJECTS.match(lower))
    )


def _extract_project(query: str) -> ParsedQuery:
    if _asks_for_all_projects(query.lower()):
        return ParsedQuery(intent=PROJECT_SUMMARY, project=None)
    return ParsedQuery(
        intent=PROJECT_SUMMARY, project=_first_capture(_PROJECT_NAME_PATTERNS, query)
    )


# ---------------------------------------------------------------------------
# Rule table: evaluated top to bottom, predicates see the lower-cased query
# ---------------------------------------------------------------------------

INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        PHASE_SPENDING,
        lambda q: _has_any(q, SPEND_TERMS) and _has_any(q, PHASE_TERMS),
        _extract_phase,
    ),
    IntentRule(
        ITEM_PURCHASES,
        lambda q: _has_any(q, ACTION_TERMS) and _has_any(q, PURCHASE_TERMS),
        _extract_item,
    ),
    IntentRule(COMPARE_PROJECTS, lambda q: "compare" in q, _extract_projects),
    IntentRule(VENDOR_SPENDING, lambda q: "vendor" in q, _extract_vendor),
    IntentRule(
        VENDOR_SPENDING,
        lambda q: _has_any(q, ACTION_TERMS) and _has_any(q, ("vendor", "suppliers")),
        _extract_all_vendors,
    ),
    IntentRule(
        PROJECT_SUMMARY,
        lambda q: "project" in q and _has_any(q, SUMMARY_TERMS),
        _extract_project,
    ),
)


def parse_query(query: str, rules: Tuple[IntentRule, ...] = INTENT_RULES) -> ParsedQuery:
    """Classify a chat question. Never raises; unmatched input is GENERAL."""
    lower = query.lower()
    for rule in rules:
        if rule.matches(lower):
            return rule.extract(query)
    return ParsedQuery(intent=GENERAL, query=query)
