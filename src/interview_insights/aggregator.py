"""Company summary aggregation across interview analyses."""
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from .models import (
    CompanySummaryData,
    DateRange,
    HandoffSummary,
    InterviewAnalysis,
    PainPointSummary,
    SummaryRecommendation,
    ToolSummary,
    TrainingGapSummary,
    WorkflowSummary,
    new_id,
    utc_now,
)
from .normalize import (
    AREA_KEY_LENGTH,
    DESCRIPTION_KEY_LENGTH,
    PRIORITY_RANK,
    RECOMMENDATION_KEY_LENGTH,
    annual_frequency,
    group_merge,
    higher,
    normalize_key,
    rank,
    union,
)

TOP_N = 10
TOP_RECOMMENDATIONS = 15

CRITICAL_SEVERITIES = ("high", "critical")

# Priority of a recommendation synthesized from a pain point
SEVERITY_TO_PRIORITY = {"critical": "high", "high": "high", "medium": "medium", "low": "low"}


@dataclass
class _RecommendationTally:
    text: str
    priority: str
    category: str | None
    count: int = 1


@dataclass
class _ToolTally:
    name: str
    user_count: int = 0
    roles: list[str] = field(default_factory=list)


def _top(items: list, count_of, limit: int = TOP_N) -> list:
    # sorted() is stable, so ties keep first-seen order
    return sorted(items, key=count_of, reverse=True)[:limit]


def _workflows(analyses: Sequence[InterviewAnalysis]) -> list[WorkflowSummary]:
    groups = group_merge(
        (w for a in analyses for w in a.workflows),
        key=lambda w: normalize_key(w.name),
        start=lambda w: WorkflowSummary(
            name=w.name, frequency=annual_frequency(w.frequency), mentions=1
        ),
        merge=lambda acc, w: acc.model_copy(update={
            "frequency": acc.frequency + annual_frequency(w.frequency),
            "mentions": acc.mentions + 1,
        }),
    )
    return _top(list(groups.values()), lambda s: s.mentions)


def _pain_points(analyses: Sequence[InterviewAnalysis]) -> list[PainPointSummary]:
    # First-seen severity is kept; duplicates only bump the count
    groups = group_merge(
        (p for a in analyses for p in a.pain_points if p.severity in CRITICAL_SEVERITIES),
        key=lambda p: normalize_key(p.description, DESCRIPTION_KEY_LENGTH),
        start=lambda p: PainPointSummary(
            description=p.description, severity=p.severity, affected_count=1
        ),
        merge=lambda acc, p: acc.model_copy(update={"affected_count": acc.affected_count + 1}),
    )
    return _top(list(groups.values()), lambda s: s.affected_count)


def _tools(analyses: Sequence[InterviewAnalysis]) -> list[ToolSummary]:
    tallies: dict[str, _ToolTally] = {}
    for analysis in analyses:
        for tool in analysis.tools:
            key = normalize_key(tool.name)
            if not key:
                continue
            tally = tallies.setdefault(key, _ToolTally(name=tool.name))
            tally.user_count += 1
            tally.roles = union(tally.roles, tool.used_by)

    summaries = [
        ToolSummary(name=t.name, user_count=t.user_count, roles=t.roles)
        for t in tallies.values()
    ]
    return _top(summaries, lambda s: s.user_count)


def _role_distribution(analyses: Sequence[InterviewAnalysis]) -> dict[str, int]:
    return dict(Counter(r.title for a in analyses for r in a.roles if r.title))


def _training_gaps(analyses: Sequence[InterviewAnalysis]) -> list[TrainingGapSummary]:
    groups = group_merge(
        (g for a in analyses for g in a.training_gaps if g.priority == "high"),
        key=lambda g: normalize_key(g.area, AREA_KEY_LENGTH),
        start=lambda g: TrainingGapSummary(
            area=g.area, affected_roles=union(g.affected_roles), frequency=1
        ),
        merge=lambda acc, g: acc.model_copy(update={
            "affected_roles": union(acc.affected_roles, g.affected_roles),
            "frequency": acc.frequency + 1,
        }),
    )
    return _top(list(groups.values()), lambda s: s.frequency)


def _handoffs(analyses: Sequence[InterviewAnalysis]) -> list[HandoffSummary]:
    # Exact, case-sensitive key
    groups = group_merge(
        (h for a in analyses for h in a.handoff_risks if h.risk_level == "high"),
        key=lambda h: f"{h.from_role}→{h.to_role}:{h.process}",
        start=lambda h: HandoffSummary(
            from_role=h.from_role, to_role=h.to_role, process=h.process, occurrences=1
        ),
        merge=lambda acc, h: acc.model_copy(update={"occurrences": acc.occurrences + 1}),
    )
    return _top(list(groups.values()), lambda s: s.occurrences)


def _recommendation_sources(analysis: InterviewAnalysis) -> list[_RecommendationTally]:
    """An analysis's own recommendations, or ones synthesized from its findings."""
    if analysis.recommendations:
        return [
            _RecommendationTally(text=r.text, priority=r.priority, category=r.category)
            for r in analysis.recommendations
        ]

    synthesized = []
    for pain in analysis.pain_points:
        if pain.suggested_solution:
            synthesized.append(_RecommendationTally(
                text=pain.suggested_solution,
                priority=SEVERITY_TO_PRIORITY.get(pain.severity, "medium"),
                category="process",
            ))
    for gap in analysis.training_gaps:
        if gap.suggested_training:
            synthesized.append(_RecommendationTally(
                text=gap.suggested_training, priority=gap.priority, category="training"
            ))
    for handoff in analysis.handoff_risks:
        if handoff.mitigation:
            synthesized.append(_RecommendationTally(
                text=handoff.mitigation, priority=handoff.risk_level, category="risk-mitigation"
            ))
    return synthesized


def _merge_recommendation(
    acc: _RecommendationTally, incoming: _RecommendationTally
) -> _RecommendationTally:
    acc.count += 1
    acc.priority = higher(PRIORITY_RANK, acc.priority, incoming.priority)
    return acc


def _recommendations(analyses: Sequence[InterviewAnalysis]) -> list[SummaryRecommendation]:
    groups = group_merge(
        (r for a in analyses for r in _recommendation_sources(a)),
        key=lambda r: normalize_key(r.text, RECOMMENDATION_KEY_LENGTH),
        start=lambda r: r,
        merge=_merge_recommendation,
    )
    ranked = sorted(
        groups.values(),
        key=lambda r: (rank(PRIORITY_RANK, r.priority), r.count),
        reverse=True,
    )[:TOP_RECOMMENDATIONS]
    return [
        SummaryRecommendation(id=new_id(), text=r.text, priority=r.priority)
        for r in ranked
    ]


def aggregate_analyses(
    analyses: Sequence[InterviewAnalysis | dict], dates: Sequence[str]
) -> CompanySummaryData:
    """Fold interview analyses into a ranked, top-N company summary.

    Args:
        analyses: One analysis per interview, as a model or its camelCase dict.
        dates: ISO-8601 creation dates, positionally matching `analyses`.

    Returns:
        The company summary. An empty date list yields a date range of "now".
    """
    analyses = [
        a if isinstance(a, InterviewAnalysis) else InterviewAnalysis.model_validate(a)
        for a in analyses
    ]
    ordered_dates = sorted(dates)
    now = utc_now()

    return CompanySummaryData(
        total_interviews=len(analyses),
        date_range=DateRange(
            earliest=ordered_dates[0] if ordered_dates else now,
            latest=ordered_dates[-1] if ordered_dates else now,
        ),
        top_workflows=_workflows(analyses),
        critical_pain_points=_pain_points(analyses),
        common_tools=_tools(analyses),
        role_distribution=_role_distribution(analyses),
        priority_training_gaps=_training_gaps(analyses),
        high_risk_handoffs=_handoffs(analyses),
        recommendations=_recommendations(analyses),
    )
