"""Data models for interview analyses and their derived views."""
import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


AnalysisStatus = Literal["pending", "analyzing", "completed", "failed"]
Frequency = Literal["daily", "weekly", "monthly", "ad-hoc"]
Severity = Literal["low", "medium", "high", "critical"]
Priority = Literal["low", "medium", "high"]
RiskLevel = Literal["low", "medium", "high"]
ToolCategory = Literal["crm", "pm", "spreadsheet", "communication", "erp", "other"]
GapType = Literal["underutilized", "overlap", "missing-integration", "data-handoff"]
TrainingCategory = Literal["skill", "system", "process", "knowledge", "other"]
FlowDirection = Literal["in", "out"]


def new_id() -> str:
    """Mint a fresh item id."""
    return uuid.uuid4().hex[:12]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisItem(CamelModel):
    """One entry of an analysis list; tolerant of hand-edited input."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Nulls and blank ids fall back to field defaults
        if isinstance(data, dict):
            return {
                k: v for k, v in data.items()
                if v is not None and not (k == "id" and not v)
            }
        return data


# --- Analysis Record ---

class Workflow(AnalysisItem):
    name: str = ""
    steps: list[str] = []
    frequency: str = "ad-hoc"
    participants: list[str] = []
    duration: str | None = None
    notes: str | None = None


class PainPoint(AnalysisItem):
    category: str = "other"
    description: str = ""
    severity: str = "medium"
    affected_roles: list[str] = []
    frequency: str = ""
    impact: str = ""
    suggested_solution: str | None = None


class Tool(AnalysisItem):
    name: str = ""
    purpose: str = ""
    used_by: list[str] = []
    frequency: str = ""
    integrations: list[str] = []
    limitations: str | None = None


class Role(AnalysisItem):
    title: str = ""
    responsibilities: list[str] = []
    workflows: list[str] = []
    tools: list[str] = []
    team_size: int | None = None


class TrainingGap(AnalysisItem):
    area: str = ""
    affected_roles: list[str] = []
    priority: str = "medium"
    current_state: str = ""
    desired_state: str = ""
    suggested_training: str | None = None


class HandoffRisk(AnalysisItem):
    from_role: str = ""
    to_role: str = ""
    process: str = ""
    risk_level: str = "medium"
    description: str = ""
    mitigation: str | None = None


class Recommendation(AnalysisItem):
    text: str = ""
    priority: str = "medium"
    category: str | None = None
    source: str | None = None


def parse_items(model: type[AnalysisItem], raw: Any) -> list:
    """Validate a raw list leniently, skipping entries that cannot be read."""
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if isinstance(entry, model):
            items.append(entry)
            continue
        if not isinstance(entry, dict):
            continue
        try:
            items.append(model.model_validate(entry))
        except ValidationError:
            # Hand-edited records may carry entries of the wrong shape
            continue
    return items


_ITEM_MODELS: dict[str, type[AnalysisItem]] = {
    "workflows": Workflow,
    "pain_points": PainPoint,
    "tools": Tool,
    "roles": Role,
    "training_gaps": TrainingGap,
    "handoff_risks": HandoffRisk,
    "recommendations": Recommendation,
}


class InterviewAnalysis(CamelModel):
    """Structured analysis of one interview transcript."""
    workflows: list[Workflow] = []
    pain_points: list[PainPoint] = []
    tools: list[Tool] = []
    roles: list[Role] = []
    training_gaps: list[TrainingGap] = []
    handoff_risks: list[HandoffRisk] = []
    # None marks older records that predate recommendations
    recommendations: list[Recommendation] | None = None

    @field_validator(
        "workflows", "pain_points", "tools", "roles", "training_gaps", "handoff_risks",
        mode="before",
    )
    @classmethod
    def _lenient_items(cls, value: Any, info: ValidationInfo) -> list:
        return parse_items(_ITEM_MODELS[info.field_name], value)

    @field_validator("recommendations", mode="before")
    @classmethod
    def _lenient_recommendations(cls, value: Any) -> list | None:
        if value is None:
            return None
        return parse_items(Recommendation, value)


# --- Persistence rows ---

class Interview(BaseModel):
    """An interview row; analysis columns stay raw until the interview is completed."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    user_id: str | None = None
    company_id: str | None = None
    title: str = ""
    transcript_text: str = ""
    analysis_status: str = "pending"
    workflows: Any = None
    pain_points: Any = None
    tools: Any = None
    roles: Any = None
    training_gaps: Any = None
    handoff_risks: Any = None
    raw_analysis_response: Any = None
    error_message: str | None = None
    analyzed_at: str | None = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)
    interview_date: str | None = None
    interviewee_name: str | None = None
    interviewee_role: str | None = None
    department: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.analysis_status == "completed"

    def to_analysis(self) -> InterviewAnalysis:
        """Read the analysis columns into an InterviewAnalysis."""
        return InterviewAnalysis(
            workflows=self.workflows,
            pain_points=self.pain_points,
            tools=self.tools,
            roles=self.roles,
            training_gaps=self.training_gaps,
            handoff_risks=self.handoff_risks,
        )

    def with_analysis(self, analysis: InterviewAnalysis) -> "Interview":
        """Copy with the analysis columns replaced by plain camelCase data."""
        data = analysis.model_dump(by_alias=True)
        return self.model_copy(update={
            "workflows": data["workflows"],
            "pain_points": data["painPoints"],
            "tools": data["tools"],
            "roles": data["roles"],
            "training_gaps": data["trainingGaps"],
            "handoff_risks": data["handoffRisks"],
        })


def as_interview(record: Any) -> Interview:
    if isinstance(record, Interview):
        return record
    return Interview.model_validate(record)


class CompanySummaryRecord(BaseModel):
    """A persisted, frozen company summary."""
    id: str = Field(default_factory=new_id)
    user_id: str
    title: str
    interview_ids: list[str] = []
    summary_data: dict[str, Any] | None = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


# --- Company Summary ---

class DateRange(CamelModel):
    earliest: str
    latest: str


class WorkflowSummary(CamelModel):
    name: str
    frequency: int
    mentions: int


class PainPointSummary(CamelModel):
    description: str
    severity: str
    affected_count: int


class ToolSummary(CamelModel):
    name: str
    user_count: int
    roles: list[str]


class TrainingGapSummary(CamelModel):
    area: str
    affected_roles: list[str]
    priority: Priority = "high"
    frequency: int


class HandoffSummary(CamelModel):
    from_role: str
    to_role: str
    process: str
    occurrences: int


class SummaryRecommendation(CamelModel):
    id: str
    text: str
    priority: str


class CompanySummaryData(CamelModel):
    """Ranked, top-N snapshot of insights across interviews."""
    total_interviews: int
    date_range: DateRange
    top_workflows: list[WorkflowSummary] = []
    critical_pain_points: list[PainPointSummary] = []
    common_tools: list[ToolSummary] = []
    role_distribution: dict[str, int] = {}
    priority_training_gaps: list[TrainingGapSummary] = []
    high_risk_handoffs: list[HandoffSummary] = []
    recommendations: list[SummaryRecommendation] = []


# --- Dashboard aggregations ---

class Aggregation(CamelModel):
    count: int = 0
    interview_ids: list[str] = []


class WorkflowAggregation(Aggregation):
    name: str
    frequency: str
    participants: list[str] = []


class PainPointAggregation(Aggregation):
    description: str
    category: str
    severity: str
    affected_roles: list[str] = []


class ToolAggregation(Aggregation):
    name: str
    purpose: str
    used_by: list[str] = []
    limitations: list[str] = []


class RoleAggregation(Aggregation):
    title: str
    responsibilities: list[str] = []
    workflows: list[str] = []
    tools: list[str] = []


class TrainingGapAggregation(Aggregation):
    area: str
    priority: str
    affected_roles: list[str] = []


class HandoffRiskAggregation(Aggregation):
    from_role: str
    to_role: str
    process: str
    risk_level: str


class DashboardMetrics(CamelModel):
    total_interviews: int = 0
    completed_interviews: int = 0
    total_workflows: int = 0
    total_pain_points: int = 0
    total_tools: int = 0
    total_roles: int = 0
    critical_pain_points: int = 0
    high_risk_handoffs: int = 0

    workflows: list[WorkflowAggregation] = []
    pain_points: list[PainPointAggregation] = []
    tools: list[ToolAggregation] = []
    roles: list[RoleAggregation] = []
    training_gaps: list[TrainingGapAggregation] = []
    handoff_risks: list[HandoffRiskAggregation] = []

    pain_points_by_severity: dict[str, int] = {}
    pain_points_by_category: dict[str, int] = {}
    workflows_by_frequency: dict[str, int] = {}
    training_gaps_by_priority: dict[str, int] = {}
    handoff_risks_by_level: dict[str, int] = {}


# --- Profiles ---

class RoleDependency(CamelModel):
    role: str
    process: str
    risk_level: str
    count: int


class RoleIssue(CamelModel):
    description: str
    severity: str
    count: int


class RoleTrainingNeed(CamelModel):
    area: str
    priority: str
    count: int


class RoleProfile(Aggregation):
    id: str = Field(default_factory=new_id)
    title: str
    responsibilities: list[str] = []
    workflows: list[str] = []
    tools: list[str] = []
    team_size: int | None = None
    inputs_from: list[RoleDependency] = []
    outputs_to: list[RoleDependency] = []
    issues_detected: list[RoleIssue] = []
    training_needs: list[RoleTrainingNeed] = []


class WorkflowStep(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    order: int
    count: int = 1
    interview_ids: list[str] = []


class FailurePoint(CamelModel):
    id: str = Field(default_factory=new_id)
    description: str
    severity: str
    step_id: str | None = None


class WorkflowProfile(Aggregation):
    id: str = Field(default_factory=new_id)
    name: str
    frequency: str
    participants: list[str] = []
    duration: str | None = None
    steps: list[WorkflowStep] = []
    systems: list[str] = []
    failure_points: list[FailurePoint] = []
    unclear_steps: list[str] = []


class ToolGap(CamelModel):
    type: GapType
    severity: Severity
    description: str
    related_tools: list[str] = []


class ToolUser(CamelModel):
    role: str
    purpose: str = ""
    count: int = 1


class ToolWorkflow(CamelModel):
    name: str
    count: int = 1


class DataFlow(CamelModel):
    """Data moving into or out of a tool through a stated integration."""
    direction: FlowDirection
    system: str
    data_type: str


class ToolProfile(Aggregation):
    id: str = Field(default_factory=new_id)
    name: str
    category: ToolCategory = "other"
    frequency: str = "unknown"
    intended_purpose: str = ""
    actual_usage: list[str] = []
    used_by: list[ToolUser] = []
    workflows: list[ToolWorkflow] = []
    integrates_with: list[str] = []
    data_flows: list[DataFlow] = []
    limitations: list[str] = []
    gaps: list[ToolGap] = []


class AffectedRole(CamelModel):
    role: str
    impact: str
    count: int = 1


class TrainingRisk(CamelModel):
    severity: Severity
    description: str
    business_impact: str


class TrainingGapProfile(Aggregation):
    id: str = Field(default_factory=new_id)
    area: str
    category: TrainingCategory = "other"
    priority: str
    affected_roles: list[AffectedRole] = []
    current_states: list[str] = []
    desired_states: list[str] = []
    suggested_training: list[str] = []
    related_systems: list[str] = []
    related_workflows: list[str] = []
    risk: TrainingRisk | None = None
