"""CSV transcript loading and parsing."""
from datetime import date, datetime
from pathlib import Path

import pandas as pd

OPTIONAL_COLUMNS = ("company_id", "interviewee_name", "interviewee_role", "department")


def _parse_date(value) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def get_date_range(csv_path: Path) -> tuple[date, date]:
    """Earliest and latest interview dates in the CSV."""
    df = pd.read_csv(csv_path)

    dates = []
    for row in df.itertuples():
        dt = _parse_date(getattr(row, "created_at", None))
        if dt is not None:
            dates.append(dt.date())

    if not dates:
        raise ValueError("No valid dates found in CSV")

    return min(dates), max(dates)


def load_transcripts(
    csv_path: Path,
    start_date: date | None = None,
    end_date: date | None = None
) -> list[dict]:
    """Load interview transcripts from CSV.

    Required columns: title, transcript. Optional: id, created_at, company_id,
    interviewee_name, interviewee_role, department.

    Returns list of dicts with: id, title, text, created_at and any optional fields present.
    """
    df = pd.read_csv(csv_path)
    missing = {"title", "transcript"} - set(df.columns)
    if missing:
        raise ValueError(f"CSV is missing required columns: {', '.join(sorted(missing))}")

    transcripts = []
    for idx, row in df.iterrows():
        dt = _parse_date(row.get("created_at"))
        interview_date = dt.date() if dt else None

        # Filter by date range if specified
        if start_date is not None and interview_date is not None:
            if interview_date < start_date:
                continue
        if end_date is not None and interview_date is not None:
            if interview_date > end_date:
                continue

        text = row.get("transcript", "")
        if pd.isna(text):
            text = ""

        record_id = row.get("id")
        transcript = {
            "id": str(record_id) if pd.notna(record_id) else f"interview_{idx}",
            "title": str(row["title"]) if pd.notna(row["title"]) else f"Interview {idx + 1}",
            "text": str(text),
        }
        if dt is not None:
            transcript["created_at"] = dt.isoformat()
        for column in OPTIONAL_COLUMNS:
            value = row.get(column)
            if value is not None and pd.notna(value):
                transcript[column] = str(value)
        transcripts.append(transcript)

    return transcripts
