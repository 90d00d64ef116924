"""Merge several interviews' analyses into one full-detail analysis."""
from typing import Any, Sequence

from .dashboard import handoff_key
from .models import (
    HandoffRisk,
    InterviewAnalysis,
    PainPoint,
    Role,
    Tool,
    TrainingGap,
    Workflow,
    as_interview,
    new_id,
)
from .normalize import (
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


def _fresh(item):
    """Copy of an item under a newly minted id."""
    return item.model_copy(update={"id": new_id()}, deep=True)


def merge_workflow(acc: Workflow, incoming: Workflow) -> Workflow:
    notes = acc.notes
    if notes and incoming.notes:
        notes = f"{notes}; {incoming.notes}"
    else:
        notes = notes or incoming.notes
    return acc.model_copy(update={
        "steps": union(acc.steps, incoming.steps),
        "participants": union(acc.participants, incoming.participants),
        "frequency": higher(FREQUENCY_RANK, acc.frequency, incoming.frequency),
        "duration": acc.duration or incoming.duration,
        "notes": notes,
    })


def merge_pain_point(acc: PainPoint, incoming: PainPoint) -> PainPoint:
    return acc.model_copy(update={
        "affected_roles": union(acc.affected_roles, incoming.affected_roles),
        "severity": higher(SEVERITY_RANK, acc.severity, incoming.severity),
        "suggested_solution": acc.suggested_solution or incoming.suggested_solution,
    })


def merge_tool(acc: Tool, incoming: Tool) -> Tool:
    return acc.model_copy(update={
        "used_by": union(acc.used_by, incoming.used_by),
        "integrations": union(acc.integrations, incoming.integrations),
        "limitations": acc.limitations or incoming.limitations,
    })


def merge_role(acc: Role, incoming: Role) -> Role:
    sizes = [s for s in (acc.team_size, incoming.team_size) if s is not None]
    return acc.model_copy(update={
        "responsibilities": union(acc.responsibilities, incoming.responsibilities),
        "workflows": union(acc.workflows, incoming.workflows),
        "tools": union(acc.tools, incoming.tools),
        "team_size": max(sizes) if sizes else None,
    })


def merge_training_gap(acc: TrainingGap, incoming: TrainingGap) -> TrainingGap:
    return acc.model_copy(update={
        "affected_roles": union(acc.affected_roles, incoming.affected_roles),
        "priority": higher(PRIORITY_RANK, acc.priority, incoming.priority),
        "suggested_training": acc.suggested_training or incoming.suggested_training,
    })


def merge_handoff(acc: HandoffRisk, incoming: HandoffRisk) -> HandoffRisk:
    return acc.model_copy(update={
        "risk_level": higher(RISK_RANK, acc.risk_level, incoming.risk_level),
        "mitigation": acc.mitigation or incoming.mitigation,
    })


def merge_analysis_data(interviews: Sequence[Any]) -> InterviewAnalysis:
    """Combine the analyses of several interviews, keeping field-level detail.

    Items describing the same entity are merged; every resulting item gets
    a fresh id. Recommendations are not merged and come back empty.
    """
    analyses = [as_interview(i).to_analysis() for i in interviews]

    def merged(attr, key, merge):
        groups = group_merge(
            (item for a in analyses for item in getattr(a, attr)),
            key=key,
            start=_fresh,
            merge=merge,
        )
        return list(groups.values())

    return InterviewAnalysis(
        workflows=merged("workflows", lambda w: normalize_key(w.name), merge_workflow),
        pain_points=merged(
            "pain_points",
            lambda p: normalize_key(p.description, DESCRIPTION_KEY_LENGTH),
            merge_pain_point,
        ),
        tools=merged("tools", lambda t: normalize_key(t.name), merge_tool),
        roles=merged("roles", lambda r: normalize_key(r.title), merge_role),
        training_gaps=merged(
            "training_gaps", lambda g: normalize_key(g.area), merge_training_gap
        ),
        handoff_risks=merged(
            "handoff_risks",
            lambda h: handoff_key(h.from_role, h.to_role, h.process),
            merge_handoff,
        ),
        recommendations=[],
    )
