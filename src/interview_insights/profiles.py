"""Cross-referenced role, workflow, tool and training-gap profiles.

Each builder works over completed interviews only. A first pass aggregates
the entity itself; a second pass joins it against the other record types
collected in the same traversal (handoffs, pain points, training gaps,
tool usage) and runs the heuristic detectors.
"""
from collections import Counter
from typing import Any, Iterable, Sequence

from .heuristics import (
    classify_category,
    classify_training_area,
    is_commonly_integrated,
    mentions_manual_handoff,
    tokens,
)
from .models import (
    AffectedRole,
    DataFlow,
    FailurePoint,
    HandoffRisk,
    InterviewAnalysis,
    PainPoint,
    RoleDependency,
    RoleIssue,
    RoleProfile,
    RoleTrainingNeed,
    ToolGap,
    ToolProfile,
    ToolUser,
    ToolWorkflow,
    TrainingGap,
    TrainingGapProfile,
    TrainingRisk,
    WorkflowProfile,
    WorkflowStep,
    as_interview,
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
    rank,
    union,
)

MAX_FAILURE_POINTS = 10
MAX_TOOL_GAPS = 5
CRITICAL_ROLE_SPREAD = 3
RISK_BY_PRIORITY = {3: "high", 2: "medium", 1: "low"}
UNCLEAR_STEP_WORDS = 3

UNKNOWN_FREQUENCIES = ("", "unknown")
DEFAULT_DATA_TYPE = "Data"


def _completed(interviews: Sequence[Any]) -> list[tuple[str, InterviewAnalysis]]:
    records = [as_interview(i) for i in interviews]
    return [(i.id, i.to_analysis()) for i in records if i.is_completed]


def _pairs(completed: list[tuple[str, InterviewAnalysis]], attr: str):
    return ((interview_id, item) for interview_id, a in completed for item in getattr(a, attr))


def _items(completed: list[tuple[str, InterviewAnalysis]], attr: str) -> list:
    return [item for _, a in completed for item in getattr(a, attr)]


def _by_count(profiles: Iterable) -> list:
    return sorted(profiles, key=lambda p: p.count, reverse=True)


def _seen_in(profile, interview_id: str) -> None:
    profile.count += 1
    if interview_id not in profile.interview_ids:
        profile.interview_ids.append(interview_id)


def _distinct_pain_points(pain_points: list[PainPoint]) -> list[PainPoint]:
    """Pain points de-duplicated by description key, keeping the highest severity."""
    groups = group_merge(
        pain_points,
        key=lambda p: normalize_key(p.description, DESCRIPTION_KEY_LENGTH),
        start=lambda p: p,
        merge=lambda acc, p: acc.model_copy(update={
            "severity": higher(SEVERITY_RANK, acc.severity, p.severity)
        }),
    )
    return list(groups.values())


def _link(lookup: dict[str, dict[str, str]], role: str, name: str) -> None:
    role_key, name_key = normalize_key(role), normalize_key(name)
    if role_key and name_key:
        lookup.setdefault(role_key, {}).setdefault(name_key, name)


def participant_tools(completed: list[tuple[str, InterviewAnalysis]]) -> dict[str, dict[str, str]]:
    """Map participant key -> {tool key: tool name} from Tool.usedBy and Role.tools."""
    lookup: dict[str, dict[str, str]] = {}
    for _, analysis in completed:
        for tool in analysis.tools:
            for user in tool.used_by:
                _link(lookup, user, tool.name)
        for role in analysis.roles:
            for name in role.tools:
                _link(lookup, role.title, name)
    return lookup


def participant_workflows(completed: list[tuple[str, InterviewAnalysis]]) -> dict[str, dict[str, str]]:
    """Map participant key -> {workflow key: workflow name} from participants and Role.workflows."""
    lookup: dict[str, dict[str, str]] = {}
    for _, analysis in completed:
        for workflow in analysis.workflows:
            for participant in workflow.participants:
                _link(lookup, participant, workflow.name)
        for role in analysis.roles:
            for name in role.workflows:
                _link(lookup, role.title, name)
    return lookup


def _linked(participants: Iterable[str], lookup: dict[str, dict[str, str]]) -> dict[str, str]:
    """Names reachable from any of the participants, keyed and in first-seen order."""
    linked: dict[str, str] = {}
    for participant in participants:
        for key, name in lookup.get(normalize_key(participant), {}).items():
            linked.setdefault(key, name)
    return linked


# --- Roles ---

def _dependencies(handoffs: Iterable[HandoffRisk], counterpart: str) -> list[RoleDependency]:
    def start(h):
        return RoleDependency(
            role=getattr(h, counterpart), process=h.process, risk_level=h.risk_level, count=1
        )

    def merge(acc, h):
        acc.count += 1
        acc.risk_level = higher(RISK_RANK, acc.risk_level, h.risk_level)
        return acc

    groups = group_merge(
        handoffs,
        key=lambda h: (normalize_key(getattr(h, counterpart)), normalize_key(h.process)),
        start=start,
        merge=merge,
    )
    return _by_count(groups.values())


def _issues(pain_points: Iterable[PainPoint]) -> list[RoleIssue]:
    def merge(acc, p):
        acc.count += 1
        acc.severity = higher(SEVERITY_RANK, acc.severity, p.severity)
        return acc

    groups = group_merge(
        pain_points,
        key=lambda p: normalize_key(p.description, DESCRIPTION_KEY_LENGTH),
        start=lambda p: RoleIssue(description=p.description, severity=p.severity, count=1),
        merge=merge,
    )
    return sorted(
        groups.values(),
        key=lambda i: (rank(SEVERITY_RANK, i.severity), i.count),
        reverse=True,
    )


def _training_needs(gaps: Iterable[TrainingGap]) -> list[RoleTrainingNeed]:
    def merge(acc, g):
        acc.count += 1
        acc.priority = higher(PRIORITY_RANK, acc.priority, g.priority)
        return acc

    groups = group_merge(
        gaps,
        key=lambda g: normalize_key(g.area),
        start=lambda g: RoleTrainingNeed(area=g.area, priority=g.priority, count=1),
        merge=merge,
    )
    return sorted(
        groups.values(),
        key=lambda n: (rank(PRIORITY_RANK, n.priority), n.count),
        reverse=True,
    )


def _affects(roles: list[str], role_key: str) -> bool:
    return any(normalize_key(r) == role_key for r in roles)


def build_role_profiles(interviews: Sequence[Any]) -> list[RoleProfile]:
    """Aggregate roles and attach their handoffs, issues and training needs."""
    completed = _completed(interviews)

    def merge(acc, pair):
        interview_id, r = pair
        _seen_in(acc, interview_id)
        acc.responsibilities = union(acc.responsibilities, r.responsibilities)
        acc.workflows = union(acc.workflows, r.workflows)
        acc.tools = union(acc.tools, r.tools)
        sizes = [s for s in (acc.team_size, r.team_size) if s is not None]
        acc.team_size = max(sizes) if sizes else None
        return acc

    profiles = group_merge(
        _pairs(completed, "roles"),
        key=lambda pair: normalize_key(pair[1].title),
        start=lambda pair: RoleProfile(
            title=pair[1].title,
            responsibilities=union(pair[1].responsibilities),
            workflows=union(pair[1].workflows),
            tools=union(pair[1].tools),
            team_size=pair[1].team_size,
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    )

    handoffs = _items(completed, "handoff_risks")
    pain_points = _items(completed, "pain_points")
    gaps = _items(completed, "training_gaps")

    for role_key, profile in profiles.items():
        profile.inputs_from = _dependencies(
            (h for h in handoffs if normalize_key(h.to_role) == role_key), "from_role"
        )
        profile.outputs_to = _dependencies(
            (h for h in handoffs if normalize_key(h.from_role) == role_key), "to_role"
        )
        profile.issues_detected = _issues(
            p for p in pain_points if _affects(p.affected_roles, role_key)
        )
        profile.training_needs = _training_needs(
            g for g in gaps if _affects(g.affected_roles, role_key)
        )

    return _by_count(profiles.values())


# --- Workflows ---

def _aggregate_workflows(
    completed: list[tuple[str, InterviewAnalysis]],
) -> dict[str, WorkflowProfile]:
    """First pass: workflows keyed by name with first-sighting step order."""
    profiles: dict[str, WorkflowProfile] = {}
    steps: dict[str, dict[str, WorkflowStep]] = {}

    for interview_id, workflow in _pairs(completed, "workflows"):
        key = normalize_key(workflow.name)
        if not key:
            continue
        profile = profiles.get(key)
        if profile is None:
            profile = profiles[key] = WorkflowProfile(
                name=workflow.name,
                frequency=workflow.frequency,
                duration=workflow.duration,
            )
            steps[key] = {}
        _seen_in(profile, interview_id)
        profile.frequency = higher(FREQUENCY_RANK, profile.frequency, workflow.frequency)
        profile.participants = union(profile.participants, workflow.participants)
        profile.duration = profile.duration or workflow.duration

        for index, text in enumerate(workflow.steps):
            step_key = normalize_key(text)
            if not step_key:
                continue
            step = steps[key].get(step_key)
            if step is None:
                # Order is the index where the step was first seen
                steps[key][step_key] = WorkflowStep(
                    name=text, order=index, interview_ids=[interview_id]
                )
            else:
                step.count += 1
                if interview_id not in step.interview_ids:
                    step.interview_ids.append(interview_id)

    for key, profile in profiles.items():
        profile.steps = sorted(steps[key].values(), key=lambda s: s.order)
    return profiles


def _failure_points(
    profile: WorkflowProfile, pain_points: list[PainPoint]
) -> list[FailurePoint]:
    name_tokens = tokens(profile.name)
    step_tokens = [(step, tokens(step.name)) for step in profile.steps]
    failures = []
    for pain in pain_points:
        pain_tokens = tokens(pain.description)
        step_id = next((step.id for step, words in step_tokens if words & pain_tokens), None)
        if step_id is None and not name_tokens & pain_tokens:
            continue
        failures.append(FailurePoint(
            description=pain.description, severity=pain.severity, step_id=step_id
        ))
        if len(failures) == MAX_FAILURE_POINTS:
            break
    return failures


def _unclear_steps(profile: WorkflowProfile) -> list[str]:
    return [
        step.name for step in profile.steps
        if len(step.interview_ids) == 1 and len(step.name.split()) < UNCLEAR_STEP_WORDS
    ]


def build_workflow_profiles(interviews: Sequence[Any]) -> list[WorkflowProfile]:
    """Aggregate workflows with merged steps, systems and detected weak spots."""
    completed = _completed(interviews)
    profiles = _aggregate_workflows(completed)
    lookup = participant_tools(completed)
    pain_points = _distinct_pain_points(_items(completed, "pain_points"))

    for profile in profiles.values():
        profile.systems = list(_linked(profile.participants, lookup).values())
        profile.failure_points = _failure_points(profile, pain_points)
        profile.unclear_steps = _unclear_steps(profile)

    return _by_count(profiles.values())


# --- Tools ---

def _mode_frequency(frequencies: list[str]) -> str:
    known = [f for f in frequencies if f.strip().lower() not in UNKNOWN_FREQUENCIES]
    if not known:
        return "unknown"
    # most_common keeps first-seen order on ties
    return Counter(known).most_common(1)[0][0]


def _integrates(tool: ToolProfile, other: ToolProfile) -> bool:
    other_key = normalize_key(other.name)
    return any(other_key in normalize_key(name) for name in tool.integrates_with)


def _tool_users(mentions: list[tuple[str, str]]) -> list[ToolUser]:
    """Group (role, purpose) mentions by role; the first stated purpose wins."""
    def merge(acc, mention):
        acc.count += 1
        acc.purpose = acc.purpose or mention[1]
        return acc

    groups = group_merge(
        mentions,
        key=lambda mention: normalize_key(mention[0]),
        start=lambda mention: ToolUser(role=mention[0], purpose=mention[1]),
        merge=merge,
    )
    return _by_count(groups.values())


def _add_flow(profile: ToolProfile, direction: str, system: str, data_type: str) -> None:
    for flow in profile.data_flows:
        if flow.direction == direction and normalize_key(flow.system) == normalize_key(system):
            return
    profile.data_flows.append(DataFlow(direction=direction, system=system, data_type=data_type))


def _data_flows(profiles: dict[str, ToolProfile]) -> None:
    """Declared integrations flow out of the declaring tool and into a known target."""
    for profile in profiles.values():
        data_type = profile.intended_purpose or DEFAULT_DATA_TYPE
        for target in profile.integrates_with:
            _add_flow(profile, "out", target, data_type)
            other = profiles.get(normalize_key(target))
            if other is not None and other is not profile:
                _add_flow(other, "in", profile.name, data_type)


def _tool_gaps(
    key: str,
    profile: ToolProfile,
    profiles: dict[str, ToolProfile],
    workflow_tools: list[tuple[WorkflowProfile, dict[str, str]]],
) -> list[ToolGap]:
    gaps = []

    if len(profile.interview_ids) == 1:
        gaps.append(ToolGap(
            type="underutilized",
            severity="low",
            description=f"{profile.name} was mentioned in only one interview; adoption may be limited.",
        ))

    if profile.category != "other":
        overlapping = [
            p.name for k, p in profiles.items() if k != key and p.category == profile.category
        ]
        if overlapping:
            gaps.append(ToolGap(
                type="overlap",
                severity="medium",
                description=(
                    f"{profile.name} overlaps with {', '.join(overlapping)} "
                    f"({profile.category} tools)."
                ),
                related_tools=overlapping,
            ))

    if not is_commonly_integrated(profile.name):
        for workflow, tool_keys in workflow_tools:
            if key not in tool_keys:
                continue
            for other_key in tool_keys:
                other = profiles.get(other_key)
                if other_key == key or other is None or is_commonly_integrated(other.name):
                    continue
                if _integrates(profile, other) or _integrates(other, profile):
                    continue
                gaps.append(ToolGap(
                    type="missing-integration",
                    severity="medium",
                    description=(
                        f"{profile.name} and {other.name} are both used in "
                        f"{workflow.name} but are not integrated."
                    ),
                    related_tools=[other.name],
                ))

    if profile.category == "spreadsheet" and any(
        p.category not in ("spreadsheet", "other") for p in profiles.values()
    ):
        gaps.append(ToolGap(
            type="data-handoff",
            severity="low",
            description=f"Data likely moves between {profile.name} and other business systems by hand.",
        ))

    for limitation in profile.limitations:
        if mentions_manual_handoff(limitation):
            gaps.append(ToolGap(type="data-handoff", severity="medium", description=limitation))

    return gaps[:MAX_TOOL_GAPS]


def build_tool_profiles(interviews: Sequence[Any]) -> list[ToolProfile]:
    """Aggregate tools, classify them and detect usage gaps."""
    completed = _completed(interviews)
    profiles: dict[str, ToolProfile] = {}
    frequencies: dict[str, list[str]] = {}
    users: dict[str, list[tuple[str, str]]] = {}

    for interview_id, tool in _pairs(completed, "tools"):
        key = normalize_key(tool.name)
        if not key:
            continue
        profile = profiles.get(key)
        if profile is None:
            profile = profiles[key] = ToolProfile(
                name=tool.name, category=classify_category(tool.name)
            )
            frequencies[key] = []
            users[key] = []
        _seen_in(profile, interview_id)
        profile.intended_purpose = profile.intended_purpose or tool.purpose
        profile.actual_usage = union(profile.actual_usage, [tool.purpose])
        profile.integrates_with = union(profile.integrates_with, tool.integrations)
        profile.limitations = union(profile.limitations, [tool.limitations])
        frequencies[key].append(tool.frequency)
        users[key].extend((role, tool.purpose) for role in tool.used_by)

    lookup = participant_tools(completed)
    workflow_tools = [
        (workflow, _linked(workflow.participants, lookup))
        for workflow in _aggregate_workflows(completed).values()
    ]

    _data_flows(profiles)
    for key, profile in profiles.items():
        profile.frequency = _mode_frequency(frequencies[key])
        profile.used_by = _tool_users(users[key])
        profile.workflows = [
            ToolWorkflow(name=workflow.name, count=workflow.count)
            for workflow, tool_keys in workflow_tools if key in tool_keys
        ]
        profile.gaps = _tool_gaps(key, profile, profiles, workflow_tools)

    return _by_count(profiles.values())


# --- Training gaps ---

def _affected_roles(mentions: list[tuple[str, str]]) -> list[AffectedRole]:
    """Group (role, priority) mentions by role; impact is the highest priority seen."""
    def merge(acc, mention):
        acc.count += 1
        acc.impact = higher(PRIORITY_RANK, acc.impact, mention[1])
        return acc

    groups = group_merge(
        mentions,
        key=lambda mention: normalize_key(mention[0]),
        start=lambda mention: AffectedRole(role=mention[0], impact=mention[1]),
        merge=merge,
    )
    return _by_count(groups.values())


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" + ("" if count == 1 else "s")


def _training_risk(profile: TrainingGapProfile) -> TrainingRisk:
    severity = RISK_BY_PRIORITY.get(rank(PRIORITY_RANK, profile.priority), "low")
    if severity == "high" and len(profile.affected_roles) >= CRITICAL_ROLE_SPREAD:
        severity = "critical"
    if profile.affected_roles:
        description = (
            f"Reported in {_plural(profile.count, 'interview')} "
            f"across {_plural(len(profile.affected_roles), 'role')}."
        )
    else:
        description = "Standard training priority"
    if profile.related_workflows:
        business_impact = f"Slows {', '.join(profile.related_workflows)}."
    else:
        business_impact = "Impact to be assessed"
    return TrainingRisk(severity=severity, description=description, business_impact=business_impact)


def build_training_gap_profiles(interviews: Sequence[Any]) -> list[TrainingGapProfile]:
    """Aggregate training gaps and link them to the systems and workflows of the roles they affect."""
    completed = _completed(interviews)

    def merge(acc, pair):
        interview_id, g = pair
        _seen_in(acc, interview_id)
        acc.priority = higher(PRIORITY_RANK, acc.priority, g.priority)
        acc.current_states = union(acc.current_states, [g.current_state])
        acc.desired_states = union(acc.desired_states, [g.desired_state])
        acc.suggested_training = union(acc.suggested_training, [g.suggested_training])
        return acc

    profiles = group_merge(
        _pairs(completed, "training_gaps"),
        key=lambda pair: normalize_key(pair[1].area),
        start=lambda pair: TrainingGapProfile(
            area=pair[1].area,
            priority=pair[1].priority,
            current_states=union([pair[1].current_state]),
            desired_states=union([pair[1].desired_state]),
            suggested_training=union([pair[1].suggested_training]),
            count=1,
            interview_ids=[pair[0]],
        ),
        merge=merge,
    )

    mentions: dict[str, list[tuple[str, str]]] = {}
    for _, gap in _pairs(completed, "training_gaps"):
        mentions.setdefault(normalize_key(gap.area), []).extend(
            (role, gap.priority) for role in gap.affected_roles
        )

    tools = participant_tools(completed)
    workflows = participant_workflows(completed)
    tool_names = [t.name for t in _items(completed, "tools")]

    for key, profile in profiles.items():
        profile.affected_roles = _affected_roles(mentions.get(key, []))
        roles = [r.role for r in profile.affected_roles]
        profile.category = classify_training_area(profile.area, tool_names)
        profile.related_systems = list(_linked(roles, tools).values())
        profile.related_workflows = list(_linked(roles, workflows).values())
        profile.risk = _training_risk(profile)

    return sorted(
        profiles.values(),
        key=lambda p: (rank(PRIORITY_RANK, p.priority), p.count),
        reverse=True,
    )
