"""
Executive summary text, built from aggregate_program() output
"""


def render_executive_summary(project_name: str, summary: dict) -> str:
    health = summary["health"]
    lines = [
        f"RTG Executive Summary - {project_name}",
        f"As of {summary['as_of']:%Y-%m-%d}",
        "",
        "PROGRAM METRICS:",
        f"• Active Streams: {summary['active_streams']}",
        f"• Deliverables: {summary['deliverable_count']}",
        f"• Program Completion: {summary['program_completion_pct']}%",
        f"• Total Slip Days: {summary['total_slip_days']}",
        f"• Total Recommits: {summary['total_recommits']}",
        f"• Avg Recommits per Deliverable: {summary['avg_recommits']}",
        f"• Planning Accuracy: {summary['avg_planning_accuracy']}%",
        "",
        "HEALTH SUMMARY:",
        f"• Complete: {health['complete']}",
        f"• On Track: {health['on_track']}",
        f"• Late: {health['late']}",
        "",
        "RECOMMIT REASONS:",
    ]

    if summary["total_recommits"]:
        for entry in summary["recommit_reasons"]:
            lines.append(f"• {entry['reason']}: {entry['count']} ({entry['pct']}% of total)")
    else:
        lines.append("• No recommits recorded yet")

    if summary["streams"]:
        lines += ["", "STREAM PERFORMANCE:"]
        for stream in summary["streams"]:
            lines.append(
                f"• {stream['name']}: {stream['total']} deliverables, "
                f"{stream['completion_rate_pct']}% complete, "
                f"{stream['avg_slip_days']} avg slip days"
            )

    return "\n".join(lines) + "\n"
