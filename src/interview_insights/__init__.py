"""Aggregate analyzed interview transcripts into summaries, dashboards and profiles."""
from .aggregator import aggregate_analyses
from .dashboard import calculate_dashboard_metrics
from .merger import merge_analysis_data
from .profiles import (
    build_role_profiles,
    build_tool_profiles,
    build_training_gap_profiles,
    build_workflow_profiles,
)

__all__ = [
    "aggregate_analyses",
    "calculate_dashboard_metrics",
    "merge_analysis_data",
    "build_role_profiles",
    "build_workflow_profiles",
    "build_tool_profiles",
    "build_training_gap_profiles",
]
