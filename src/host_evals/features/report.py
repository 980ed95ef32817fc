"""Aggregate pass/fail reporting."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from host_evals.models.entities import FeatureStatus, Task, TestReport, ToolReply

__all__ = ["build_report", "render_report"]


def build_report(
    features_status: Mapping[str, FeatureStatus], tasks: Sequence[Task] = ()
) -> TestReport:
    """Split the status table into passed and failed features."""
    passed = tuple(name for name, status in features_status.items() if status.is_passed)
    failed = tuple(name for name, status in features_status.items() if not status.is_passed)
    return TestReport(
        passed_features=passed,
        failed_features=failed,
        manual_task_count=sum(1 for task in tasks if task.is_manual),
    )


def render_report(report: TestReport) -> ToolReply:
    """Render a report as the get_result tool reply."""
    lines = ["📊 **MCP Feature Test Results**", ""]

    if report.manual_task_count > 0:
        lines += [
            "🚨 **⚠️ Test Result Reliability Warning ⚠️**",
            "",
            f"This test contains {report.manual_task_count} manual test cases. "
            "**The accuracy of test results may be affected by user operations**.",
            "Please carefully read the manual test case descriptions to understand "
            "factors that may affect test accuracy.",
            "",
        ]

    lines += [
        "**Summary:**",
        f"• Total Features: {report.total}",
        f"• ✅ Passed: {report.passed}",
        f"• ❌ Failed: {report.failed}",
        f"• 📈 Pass Rate: {report.pass_rate}%",
        "",
    ]
    if report.passed_features:
        lines.append("**Passed Features:**")
        lines += [f"  ✅ {name}" for name in report.passed_features]
        lines.append("")
    if report.failed_features:
        lines.append("**Failed Features:**")
        lines += [f"  ❌ {name}" for name in report.failed_features]
        lines.append("")

    return ToolReply(
        text="\n".join(lines),
        data=report.model_dump(mode="json"),
    )
