from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Mapping, Optional, Sequence

from rich.console import Console
from rich.table import Table

from .directory import lookup_name
from .slack_client import SlackAPI

logger = logging.getLogger(__name__)

# Names per thread reply; keeps each reply well inside Slack's message limits.
CHUNK_SIZE = 40

MISSING_INTRO = "⚠️ Not yet submitted:"
NONE_MISSING_TEXT = "No outstanding submissions 🎉"


@dataclass(frozen=True)
class ReportSummary:
    label: str
    report_date: str
    as_of: datetime
    targets_count: int
    submitted_count: int
    admin_usergroup_id: Optional[str] = None
    workflow_url: str = ""


def chunked(items: Sequence[str], size: int = CHUNK_SIZE) -> List[List[str]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def build_summary_text(summary: ReportSummary, missing_count: int) -> str:
    """Parent message: counts only, never individual names."""
    lines: List[str] = []
    if summary.admin_usergroup_id:
        lines.append(f"<!subteam^{summary.admin_usergroup_id}>")
    lines.append(
        f"🕒 {summary.label} check for {summary.report_date} "
        f"(as of {summary.as_of.strftime('%Y-%m-%d %H:%M')})"
    )
    lines.append("")
    lines.append(f"Targets: {summary.targets_count}")
    lines.append(f"Submitted: {summary.submitted_count}")
    lines.append(f"Missing: {missing_count}")
    lines.append("")
    if summary.workflow_url:
        lines.append(f"Submit here 👉 {summary.workflow_url}")
    lines.append("※ People who were absent or on leave may be listed. Please follow up only with those who worked.")
    return "\n".join(lines)


def build_reply_texts(missing: Sequence[str], name_map: Mapping[str, str]) -> List[str]:
    """Thread replies listing missing people by name, CHUNK_SIZE per reply."""
    if not missing:
        return [NONE_MISSING_TEXT]

    replies: List[str] = []
    for idx, chunk in enumerate(chunked(missing)):
        names = [lookup_name(name_map, user_id) for user_id in chunk]
        if idx == 0:
            names.insert(0, MISSING_INTRO)
        replies.append("\n".join(names))
    return replies


async def publish_report(
    slack: SlackAPI,
    channel_id: str,
    summary: ReportSummary,
    missing: Sequence[str],
    name_map: Mapping[str, str],
) -> str:
    """Post the summary and thread the missing list under it.

    Returns the parent message ts. Replies are posted one at a time so they
    appear in ``missing`` order.
    """
    parent_ts = await slack.post_message(channel_id, build_summary_text(summary, len(missing)))
    replies = build_reply_texts(missing, name_map)
    for text in replies:
        await slack.post_message(channel_id, text, thread_ts=parent_ts)
    logger.info(
        "Posted %s report to %s (ts=%s, %d thread message(s))",
        summary.label, channel_id, parent_ts, len(replies),
    )
    return parent_ts


def print_report(
    summary: ReportSummary,
    missing: Sequence[str],
    name_map: Mapping[str, str],
    console: Optional[Console] = None,
) -> None:
    """Render a report to the terminal instead of posting it (dry runs)."""
    console = console or Console()

    console.print(f"[bold underline]{summary.label} check for {summary.report_date}[/bold underline]")
    console.print(build_summary_text(summary, len(missing)), markup=False, emoji=False)
    console.print()

    if not missing:
        console.print(f"[bold green]{NONE_MISSING_TEXT}[/bold green]")
        return

    table = Table(title=f"Missing ({len(missing)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("User ID", style="dim")
    for idx, user_id in enumerate(missing, start=1):
        table.add_row(str(idx), lookup_name(name_map, user_id), user_id)
    console.print(table)
