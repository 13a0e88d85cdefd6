#!/usr/bin/env python3
"""CLI to inspect a saved flow file.

Usage:
    python -m flowbuilder.analysis.analyze_flow <flow.json>

    # or with JSON output
    python -m flowbuilder.analysis.analyze_flow <flow.json> --json
"""

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from flowbuilder.adapters.persistence import FileSnapshotSink
from flowbuilder.analysis.flow_summary import FlowSummary, flow_summary
from flowbuilder.errors import FlowError


def format_summary(summary: FlowSummary) -> str:
    """Format a flow summary for human-readable output."""
    lines = []
    lines.append("=" * 60)
    lines.append("FLOW SUMMARY")
    lines.append("=" * 60)
    lines.append("")

    lines.append(f"Root:        {summary.root_id}")
    lines.append(f"Nodes:       {summary.node_count}")
    lines.append(f"Connections: {summary.connection_count}")
    lines.append(f"Max depth:   {summary.max_depth}")
    lines.append("")

    lines.append("-" * 40)
    lines.append("NODES BY KIND")
    lines.append("-" * 40)
    for kind, count in sorted(summary.nodes_by_kind.items()):
        lines.append(f"  • {kind}: {count}")
    lines.append("")

    if summary.unattached_slots:
        lines.append("-" * 40)
        lines.append("UNATTACHED OPTIONS")
        lines.append("-" * 40)
        for node_id, option in summary.unattached_slots:
            lines.append(f"  {node_id} [{option}]")
        lines.append("")

    if summary.dead_ends:
        lines.append("-" * 40)
        lines.append("DEAD ENDS (no outgoing step, not an end node)")
        lines.append("-" * 40)
        for node_id in summary.dead_ends:
            lines.append(f"  • {node_id}")
        lines.append("")

    if summary.unreachable:
        lines.append("-" * 40)
        lines.append("UNREACHABLE NODES")
        lines.append("-" * 40)
        for node_id in summary.unreachable:
            lines.append(f"  • {node_id}")
        lines.append("")
    else:
        lines.append("-" * 40)
        lines.append("✓ Every node is reachable from the root")
        lines.append("-" * 40)
        lines.append("")

    return "\n".join(lines)


def summary_to_dict(summary: FlowSummary) -> dict:
    """Convert FlowSummary to a JSON-serializable dict."""
    d = asdict(summary)
    d["unattached_slots"] = [
        {"node_id": node_id, "option": option} for node_id, option in summary.unattached_slots
    ]
    return d


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Analyze a saved flow and output structural statistics."
    )
    parser.add_argument(
        "flow_file",
        type=Path,
        help="path to the flow JSON file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="output summary as JSON instead of human-readable format",
    )

    args = parser.parse_args(argv)

    if not args.flow_file.exists():
        print(f"Error: flow file not found: {args.flow_file}", file=sys.stderr)
        return 1

    try:
        graph = FileSnapshotSink(args.flow_file).load()
    except FlowError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    summary = flow_summary(graph)

    if args.json:
        print(json.dumps(summary_to_dict(summary), indent=2))
    else:
        print(format_summary(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
