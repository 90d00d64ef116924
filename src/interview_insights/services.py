"""Interview and company-summary services over the record store."""
from typing import Any, Sequence

from .aggregator import aggregate_analyses
from .analyzer import TranscriptAnalyzer
from .dashboard import calculate_dashboard_metrics
from .merger import merge_analysis_data
from .models import (
    CompanySummaryRecord,
    DashboardMetrics,
    HandoffSummary,
    Interview,
    PainPointSummary,
    as_interview,
    utc_now,
)
from .store import RecordStore


class SummaryService:
    """Generates frozen company summaries and applies explicit edits to them."""

    def __init__(self, store: RecordStore[CompanySummaryRecord]):
        self.store = store

    def generate(
        self, title: str, user_id: str | None, interviews: Sequence[Any]
    ) -> CompanySummaryRecord:
        """Aggregate the selected interviews and persist the snapshot."""
        if not user_id:
            raise ValueError("User not authenticated")
        records = [as_interview(i) for i in interviews]
        if not records:
            raise ValueError("Select at least one interview to summarise")

        summary = aggregate_analyses(
            [r.to_analysis() for r in records],
            [r.created_at for r in records],
        )
        return self.store.insert(CompanySummaryRecord(
            user_id=user_id,
            title=title,
            interview_ids=[r.id for r in records],
            summary_data=summary.model_dump(by_alias=True),
        ))

    def list_for_user(self, user_id: str) -> list[CompanySummaryRecord]:
        """The user's summaries, newest first."""
        owned = [s for s in self.store.records() if s.user_id == user_id]
        return sorted(owned, key=lambda s: s.created_at, reverse=True)

    def rename(self, summary_id: str, title: str) -> CompanySummaryRecord:
        return self.store.update(summary_id, title=title)

    def _replace(self, summary_id: str, field: str, items: list) -> CompanySummaryRecord:
        record = self.store.get(summary_id)
        if record is None:
            raise KeyError(summary_id)
        summary_data = dict(record.summary_data or {})
        summary_data[field] = [item.model_dump(by_alias=True) for item in items]
        return self.store.update(summary_id, summary_data=summary_data)

    def replace_pain_points(
        self, summary_id: str, pain_points: list[PainPointSummary]
    ) -> CompanySummaryRecord:
        return self._replace(summary_id, "criticalPainPoints", pain_points)

    def replace_handoffs(
        self, summary_id: str, handoffs: list[HandoffSummary]
    ) -> CompanySummaryRecord:
        return self._replace(summary_id, "highRiskHandoffs", handoffs)

    def delete(self, summary_id: str) -> None:
        self.store.delete(summary_id)


class InterviewService:
    """Interview lifecycle: create, analyze, merge."""

    def __init__(
        self,
        store: RecordStore[Interview],
        analyzer: TranscriptAnalyzer | None = None
    ):
        self.store = store
        self.analyzer = analyzer

    def create(self, user_id: str, title: str, transcript: str, **fields) -> Interview:
        return self.store.insert(Interview(
            user_id=user_id, title=title, transcript_text=transcript, **fields
        ))

    async def analyze(self, interview_id: str) -> Interview:
        """Run the analyzer on a stored interview and record the outcome."""
        if self.analyzer is None:
            raise ValueError("No analyzer configured")
        interview = self.store.get(interview_id)
        if interview is None:
            raise KeyError(interview_id)

        self.store.update(interview_id, analysis_status="analyzing", error_message=None)
        result = await self.analyzer.analyze_transcript(interview.transcript_text)

        if not result.success or result.analysis is None:
            return self.store.update(
                interview_id,
                analysis_status="failed",
                error_message=result.error or "Analysis failed",
            )

        analyzed = interview.with_analysis(result.analysis)
        return self.store.update(
            interview_id,
            analysis_status="completed",
            workflows=analyzed.workflows,
            pain_points=analyzed.pain_points,
            tools=analyzed.tools,
            roles=analyzed.roles,
            training_gaps=analyzed.training_gaps,
            handoff_risks=analyzed.handoff_risks,
            raw_analysis_response=result.model_dump(mode="json", exclude={"analysis"}),
            analyzed_at=utc_now(),
        )

    def merge(self, title: str, user_id: str | None, interviews: Sequence[Any]) -> Interview:
        """Create one completed interview combining several others."""
        records = [as_interview(i) for i in interviews]
        if not user_id or len(records) < 2:
            raise ValueError("Need at least 2 interviews to merge")

        transcript = "\n\n".join(
            f"--- Interview {n}: {r.title} ---\n\n{r.transcript_text}"
            for n, r in enumerate(records, 1)
        )
        merged = Interview(
            user_id=user_id,
            title=title,
            transcript_text=transcript,
            analysis_status="completed",
            analyzed_at=utc_now(),
        ).with_analysis(merge_analysis_data(records))
        return self.store.insert(merged)

    def dashboard(self) -> DashboardMetrics:
        return calculate_dashboard_metrics(self.store.records())
