"""Analysis utilities for flows."""

from flowbuilder.analysis.flow_summary import FlowSummary, flow_summary
from flowbuilder.analysis.analyze_flow import format_summary, summary_to_dict

__all__ = [
    "FlowSummary",
    "flow_summary",
    "format_summary",
    "summary_to_dict",
]
