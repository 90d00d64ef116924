"""Interview insights pipeline: load, analyze, summarize, report."""
import argparse
import asyncio
from pathlib import Path

from . import config
from .analyzer import TranscriptAnalyzer
from .client import APIClient
from .loader import load_transcripts
from .models import CompanySummaryData, CompanySummaryRecord, Interview
from .services import SummaryService
from .store import RecordStore


def _format_value(value) -> str:
    """Format value for markdown output."""
    if isinstance(value, dict):
        return "; ".join(f"{k}: {v}" for k, v in value.items())
    elif isinstance(value, list):
        return ", ".join(str(i) if not isinstance(i, (dict, list)) else _format_value(i) for i in value) or "N/A"
    return str(value).strip()


def _summary_to_markdown(title: str, summary: CompanySummaryData) -> str:
    """Convert a company summary to markdown format."""
    lines = [
        f"# {title}",
        f"**Interviews:** {summary.total_interviews}",
        f"**Period:** {summary.date_range.earliest} to {summary.date_range.latest}\n",
        "## Top Workflows",
        *[f"- **{w.name}** ({w.mentions} mentions, ~{w.frequency} runs/year)" for w in summary.top_workflows],
        "",
        "## Critical Pain Points",
        *[
            f"- [{p.severity.upper()}] {p.description} (reported {p.affected_count}x)"
            for p in summary.critical_pain_points
        ],
        "",
        "## Common Tools",
        *[f"- **{t.name}** ({t.user_count}): {_format_value(t.roles)}" for t in summary.common_tools],
        "",
        "## Role Distribution",
        *[f"- {role}: {count}" for role, count in summary.role_distribution.items()],
        "",
    ]

    if summary.priority_training_gaps:
        lines.append("## Priority Training Gaps")
        lines.extend([
            f"- **{g.area}** ({g.frequency}x): {_format_value(g.affected_roles)}"
            for g in summary.priority_training_gaps
        ])
        lines.append("")

    if summary.high_risk_handoffs:
        lines.append("## High-Risk Handoffs")
        lines.extend([
            f"- {h.from_role} → {h.to_role}: {h.process} ({h.occurrences}x)"
            for h in summary.high_risk_handoffs
        ])
        lines.append("")

    lines.append("## Recommendations")
    for i, rec in enumerate(summary.recommendations, 1):
        lines.append(f"{i}. [{rec.priority.upper()}] {rec.text}")

    return "\n".join(lines)


async def run_pipeline(
    csv_path: Path,
    title: str = "Company Summary",
    user_id: str = "local",
    data_dir: Path = config.DATA_DIR,
    analyzer: TranscriptAnalyzer | None = None
) -> CompanySummaryRecord | None:
    """Run the complete pipeline: load → analyze → summarize → report."""
    print("=== Interview Insights Pipeline ===\n")

    if not csv_path.exists():
        print(f"Error: {csv_path} not found")
        return None

    print(f"Loading transcripts from {csv_path}...")
    transcripts = load_transcripts(csv_path)
    print(f"Loaded {len(transcripts)} transcripts\n")

    interview_store = RecordStore(data_dir / "interviews", Interview)
    summaries = SummaryService(RecordStore(data_dir / "summaries", CompanySummaryRecord))
    analyzer = analyzer or TranscriptAnalyzer(APIClient(), data_dir / "analyses")

    # Analyze
    print("Analyzing transcripts...")
    results = await analyzer.analyze_batch(transcripts)
    stored = []
    for item in transcripts:
        result = results[item["id"]]
        fields = {k: v for k, v in item.items() if k not in ("id", "title", "text")}
        interview = Interview(
            id=item["id"],
            user_id=user_id,
            title=item["title"],
            transcript_text=item["text"],
            analysis_status="completed" if result.success else "failed",
            error_message=result.error,
            **fields,
        )
        if result.success and result.analysis is not None:
            interview = interview.with_analysis(result.analysis)
        if interview.id in interview_store:
            print(f"  Skipping {interview.id}: already stored")
            continue
        stored.append(interview_store.insert(interview))

    completed = [i for i in stored if i.is_completed]
    print(f"✓ Analyzed {len(completed)}/{len(stored)} interviews\n")

    if not completed:
        print("No completed analyses to summarize.")
        return None

    # Summarize
    print("Generating company summary...")
    record = summaries.generate(title, user_id, completed)
    summary = CompanySummaryData.model_validate(record.summary_data)
    print("✓ Summary generated\n")

    # Save markdown
    print("Saving markdown report...")
    reports_dir = data_dir / "reports"
    reports_dir.mkdir(parents=True, exist_ok=True)
    md_file = reports_dir / f"summary_{record.id}.md"
    md_file.write_text(_summary_to_markdown(title, summary), encoding="utf-8")
    print(f"✓ Saved to {md_file}\n")

    # Display summary
    print("=" * 60)
    print(title.upper())
    print("=" * 60)
    print(f"Interviews: {summary.total_interviews}")
    print("\nTOP WORKFLOWS:")
    for w in summary.top_workflows[:5]:
        print(f"  {w.name} ({w.mentions} mentions)")
    print("\nCRITICAL PAIN POINTS:")
    for i, pain in enumerate(summary.critical_pain_points[:5], 1):
        print(f"{i}. [{pain.severity.upper()}] {pain.description}")
    print("\nRECOMMENDATIONS:")
    for i, rec in enumerate(summary.recommendations[:5], 1):
        print(f"{i}. [{rec.priority.upper()}] {rec.text}")
    print("=" * 60)
    print(f"Full report: {md_file}")
    print("=" * 60)
    return record


def main() -> None:
    parser = argparse.ArgumentParser(description="Analyze interview transcripts into a company summary")
    parser.add_argument("csv_path", type=Path, help="CSV with title and transcript columns")
    parser.add_argument("--title", default="Company Summary")
    parser.add_argument("--user-id", default="local")
    parser.add_argument("--data-dir", type=Path, default=config.DATA_DIR)
    args = parser.parse_args()

    asyncio.run(run_pipeline(args.csv_path, args.title, args.user_id, args.data_dir))


if __name__ == "__main__":
    main()
