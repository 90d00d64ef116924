"""Dashboard metrics over completed interviews."""
from collections import Counter
from typing import Any, Iterable, Sequence

from .models import (
    Aggregation,
    DashboardMetrics,
    HandoffRiskAggregation,
    InterviewAnalysis,
    PainPointAggregation,
    RoleAggregation,
    ToolAggregation,
    TrainingGapAggregation,
    WorkflowAggregation,
    as_interview,
)
from .normalize import (
    AREA_KEY_LENGTH,
    DESCRIPTION_KEY_LENGTH,
    FREQUENCY_RANK,
    PRIORITY_RANK,
    RISK_RANK,
    SEVERITY_RANK,
    group_merge,
    higher,
    normalize_key,
    union,
)


def _seen_in(acc: Aggregation, interview_id: str) -> None:
    acc.count += 1
    if interview_id not in acc.interview_ids:
        acc.interview_ids.append(interview_id)


def _by_count(groups: dict) -> list:
    return sorted(groups.values(), key=lambda a: a.count, reverse=True)


def _workflows(pairs: Iterable) -> list[WorkflowAggregation]:
    def merge(acc, pair):
        interview_id, w = pair
        _seen_in(acc, interview_id)
        acc.frequency = higher(FREQUENCY_RANK, acc.frequency, w.frequency)
        acc.participants = union(acc.participants, w.participants)
        return acc

    return _by_count(group_merge(
        pairs,
        key=lambda pair: normalize_key(pair[1].name),
        start=lambda pair: WorkflowAggregation(
            name=pair[1].name,
            frequency=pair[1].frequency,
            participants=union(pair[1].participants),
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    ))


def _pain_points(pairs: Iterable) -> list[PainPointAggregation]:
    def merge(acc, pair):
        interview_id, p = pair
        _seen_in(acc, interview_id)
        acc.severity = higher(SEVERITY_RANK, acc.severity, p.severity)
        acc.affected_roles = union(acc.affected_roles, p.affected_roles)
        return acc

    return _by_count(group_merge(
        pairs,
        key=lambda pair: normalize_key(pair[1].description, DESCRIPTION_KEY_LENGTH),
        start=lambda pair: PainPointAggregation(
            description=pair[1].description,
            category=pair[1].category,
            severity=pair[1].severity,
            affected_roles=union(pair[1].affected_roles),
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    ))


def _tools(pairs: Iterable) -> list[ToolAggregation]:
    def merge(acc, pair):
        interview_id, t = pair
        _seen_in(acc, interview_id)
        acc.purpose = acc.purpose or t.purpose
        acc.used_by = union(acc.used_by, t.used_by)
        acc.limitations = union(acc.limitations, [t.limitations])
        return acc

    return _by_count(group_merge(
        pairs,
        key=lambda pair: normalize_key(pair[1].name),
        start=lambda pair: ToolAggregation(
            name=pair[1].name,
            purpose=pair[1].purpose,
            used_by=union(pair[1].used_by),
            limitations=union([pair[1].limitations]),
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    ))


def _roles(pairs: Iterable) -> list[RoleAggregation]:
    def merge(acc, pair):
        interview_id, r = pair
        _seen_in(acc, interview_id)
        acc.responsibilities = union(acc.responsibilities, r.responsibilities)
        acc.workflows = union(acc.workflows, r.workflows)
        acc.tools = union(acc.tools, r.tools)
        return acc

    return _by_count(group_merge(
        pairs,
        key=lambda pair: normalize_key(pair[1].title),
        start=lambda pair: RoleAggregation(
            title=pair[1].title,
            responsibilities=union(pair[1].responsibilities),
            workflows=union(pair[1].workflows),
            tools=union(pair[1].tools),
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    ))


def _training_gaps(pairs: Iterable) -> list[TrainingGapAggregation]:
    def merge(acc, pair):
        interview_id, g = pair
        _seen_in(acc, interview_id)
        acc.priority = higher(PRIORITY_RANK, acc.priority, g.priority)
        acc.affected_roles = union(acc.affected_roles, g.affected_roles)
        return acc

    return _by_count(group_merge(
        pairs,
        key=lambda pair: normalize_key(pair[1].area, AREA_KEY_LENGTH),
        start=lambda pair: TrainingGapAggregation(
            area=pair[1].area,
            priority=pair[1].priority,
            affected_roles=union(pair[1].affected_roles),
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    ))


def handoff_key(from_role: str, to_role: str, process: str) -> str:
    """Case-insensitive handoff identity."""
    return f"{from_role}→{to_role}:{process}".lower()


def _handoffs(pairs: Iterable) -> list[HandoffRiskAggregation]:
    def merge(acc, pair):
        interview_id, h = pair
        _seen_in(acc, interview_id)
        acc.risk_level = higher(RISK_RANK, acc.risk_level, h.risk_level)
        return acc

    return _by_count(group_merge(
        pairs,
        key=lambda pair: handoff_key(pair[1].from_role, pair[1].to_role, pair[1].process),
        start=lambda pair: HandoffRiskAggregation(
            from_role=pair[1].from_role,
            to_role=pair[1].to_role,
            process=pair[1].process,
            risk_level=pair[1].risk_level,
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    ))


def _distribution(aggregations: Sequence[Aggregation], field: str) -> dict[str, int]:
    """Sum aggregated counts per bucket of `field`."""
    totals: Counter = Counter()
    for aggregation in aggregations:
        totals[getattr(aggregation, field)] += aggregation.count
    return dict(totals)


def calculate_dashboard_metrics(interviews: Sequence[Any]) -> DashboardMetrics:
    """Aggregate every category across completed interviews.

    Merged severity, priority and risk level are upgraded to the highest
    value any contributing interview reported. Interviews that are not
    completed only count towards `total_interviews`.
    """
    records = [as_interview(i) for i in interviews]
    completed: list[tuple[str, InterviewAnalysis]] = [
        (i.id, i.to_analysis()) for i in records if i.is_completed
    ]

    def pairs(attr: str):
        return ((interview_id, item) for interview_id, a in completed for item in getattr(a, attr))

    workflows = _workflows(pairs("workflows"))
    pain_points = _pain_points(pairs("pain_points"))
    tools = _tools(pairs("tools"))
    roles = _roles(pairs("roles"))
    training_gaps = _training_gaps(pairs("training_gaps"))
    handoff_risks = _handoffs(pairs("handoff_risks"))

    return DashboardMetrics(
        total_interviews=len(records),
        completed_interviews=len(completed),
        total_workflows=len(workflows),
        total_pain_points=len(pain_points),
        total_tools=len(tools),
        total_roles=len(roles),
        critical_pain_points=sum(1 for p in pain_points if p.severity in ("high", "critical")),
        high_risk_handoffs=sum(1 for h in handoff_risks if h.risk_level == "high"),
        workflows=workflows,
        pain_points=pain_points,
        tools=tools,
        roles=roles,
        training_gaps=training_gaps,
        handoff_risks=handoff_risks,
        pain_points_by_severity=_distribution(pain_points, "severity"),
        pain_points_by_category=_distribution(pain_points, "category"),
        workflows_by_frequency=_distribution(workflows, "frequency"),
        training_gaps_by_priority=_distribution(training_gaps, "priority"),
        handoff_risks_by_level=_distribution(handoff_risks, "risk_level"),
    )
