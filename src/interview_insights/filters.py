"""Interview list filtering."""
from datetime import date, datetime, time, timezone
from typing import Any, Sequence

from pydantic import BaseModel

from .models import AnalysisStatus, Interview, PainPoint, Severity, Tool, as_interview, parse_items

UNASSIGNED = "unassigned"


class DateFilter(BaseModel):
    start: date | None = None
    end: date | None = None


class InterviewFilters(BaseModel):
    search_query: str = ""
    statuses: list[AnalysisStatus] = []
    date_range: DateFilter = DateFilter()
    severities: list[Severity] = []
    tools: list[str] = []


DEFAULT_FILTERS = InterviewFilters()


def _created_at(interview: Interview) -> datetime | None:
    try:
        created = datetime.fromisoformat(interview.created_at.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def _in_range(interview: Interview, date_range: DateFilter) -> bool:
    created = _created_at(interview)
    if created is None:
        return False
    if date_range.start and created < datetime.combine(date_range.start, time.min, timezone.utc):
        return False
    # End date is inclusive up to the end of that day
    if date_range.end and created > datetime.combine(date_range.end, time.max, timezone.utc):
        return False
    return True


def _matches_search(interview: Interview, query: str) -> bool:
    return query in interview.title.lower() or query in interview.transcript_text.lower()


def filter_interviews(
    interviews: Sequence[Any],
    filters: InterviewFilters = DEFAULT_FILTERS,
    company_filter: str | None = None
) -> list[Interview]:
    """Apply the company filter, then every active filter group in turn."""
    result = [as_interview(i) for i in interviews]

    if company_filter == UNASSIGNED:
        result = [i for i in result if not i.company_id]
    elif company_filter is not None:
        result = [i for i in result if i.company_id == company_filter]

    query = filters.search_query.strip().lower()
    if query:
        result = [i for i in result if _matches_search(i, query)]

    if filters.statuses:
        result = [i for i in result if i.analysis_status in filters.statuses]

    if filters.date_range.start or filters.date_range.end:
        result = [i for i in result if _in_range(i, filters.date_range)]

    if filters.severities:
        result = [
            i for i in result
            if any(p.severity in filters.severities for p in parse_items(PainPoint, i.pain_points))
        ]

    if filters.tools:
        wanted = {t.lower() for t in filters.tools}
        result = [
            i for i in result
            if any(t.name.lower() in wanted for t in parse_items(Tool, i.tools))
        ]

    return result


def available_tools(interviews: Sequence[Any]) -> list[str]:
    """Distinct tool names across interviews, sorted."""
    names = {
        tool.name
        for interview in interviews
        for tool in parse_items(Tool, as_interview(interview).tools)
        if tool.name
    }
    return sorted(names)


def active_filter_count(filters: InterviewFilters) -> int:
    return sum([
        bool(filters.search_query.strip()),
        bool(filters.statuses),
        bool(filters.date_range.start or filters.date_range.end),
        bool(filters.severities),
        bool(filters.tools),
    ])
