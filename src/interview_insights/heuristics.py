"""Keyword heuristics for tool and training classification and text matching.

These are deliberately approximate. The category tables are ordered: the
first matching category wins.
"""
import re
from typing import Iterable

CATEGORY_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("crm", re.compile(r"salesforce|hubspot|\bcrm\b|pipedrive|zoho|freshsales", re.I)),
    ("pm", re.compile(r"jira|asana|trello|monday|basecamp|clickup|wrike|smartsheet|\bnotion\b|project", re.I)),
    ("spreadsheet", re.compile(r"excel|spreadsheet|sheets|airtable|\bcsv\b", re.I)),
    ("communication", re.compile(r"slack|teams|zoom|e-?mail|outlook|gmail|webex|chat", re.I)),
    ("erp", re.compile(r"\bsap\b|netsuite|oracle|\berp\b|dynamics|quickbooks|xero|odoo|\bsage\b", re.I)),
]

# Tools that commonly move data around without a formal integration
COMMONLY_INTEGRATED = ("excel", "sheets", "email", "outlook", "gmail")

MANUAL_HANDOFF = re.compile(r"manual|export|copy", re.I)

TRAINING_CATEGORY_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("system", re.compile(r"system|software|\btools?\b|platform|\bcrm\b|\berp\b|excel|salesforce|netsuite|quickbooks", re.I)),
    ("process", re.compile(r"process|procedure|workflow|policy|policies|approval|handoff|onboarding", re.I)),
    ("skill", re.compile(r"skill|communication|leadership|negotiation|writing|presentation|analy", re.I)),
    ("knowledge", re.compile(r"knowledge|understanding|product|domain|regulat|compliance|industry", re.I)),
]

_WORD = re.compile(r"[a-z0-9]+")


def classify_category(name: str) -> str:
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(name or ""):
            return category
    return "other"


def tokens(text: str | None) -> set[str]:
    """Lower-cased words longer than three characters."""
    return {word for word in _WORD.findall((text or "").lower()) if len(word) > 3}


def tokens_overlap(a: str | None, b: str | None) -> bool:
    return bool(tokens(a) & tokens(b))


def is_commonly_integrated(name: str) -> bool:
    lowered = (name or "").lower()
    return any(word in lowered for word in COMMONLY_INTEGRATED)


def mentions_manual_handoff(text: str | None) -> bool:
    return bool(MANUAL_HANDOFF.search(text or ""))


def classify_training_area(area: str, tool_names: Iterable[str] = ()) -> str:
    """Training category for an area; naming a known tool makes it a system gap."""
    if any(tokens_overlap(area, name) for name in tool_names):
        return "system"
    for category, pattern in TRAINING_CATEGORY_PATTERNS:
        if pattern.search(area or ""):
            return category
    return "other"
