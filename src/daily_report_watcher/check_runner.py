"""
Orchestrator for one compliance check.

Steps:
  1. Compute the audit window in the configured time zone
  2. Resolve the target user group (minus excluded IDs)
  3. Fetch every channel message inside the window
  4. Extract submitters and reconcile against the targets
  5. Resolve display names from the workspace directory
  6. Post the summary and the threaded missing list

Any failure aborts the check before anything is posted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
from typing import List, Optional, Set

from rich.console import Console

from .config import CheckConfig, Config
from .directory import build_name_map
from .logic import (
    SubmitterExtractor,
    extract_first_mention,
    extract_submitted,
    fetch_window_messages,
    reconcile,
    resolve_targets,
)
from .reporting import ReportSummary, print_report, publish_report
from .slack_client import SlackAPI
from .window import AuditWindow, compute_window

logger = logging.getLogger(__name__)


class CheckState(str, Enum):
    IDLE = "IDLE"
    WINDOW_COMPUTED = "WINDOW_COMPUTED"
    TARGETS_RESOLVED = "TARGETS_RESOLVED"
    HISTORY_FETCHED = "HISTORY_FETCHED"
    RECONCILED = "RECONCILED"
    NAMES_RESOLVED = "NAMES_RESOLVED"
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"


@dataclass
class CheckResult:
    """Outcome of one check invocation."""
    label: str
    channel_id: str
    state: CheckState = CheckState.IDLE
    window: Optional[AuditWindow] = None
    targets: List[str] = field(default_factory=list)
    message_count: int = 0
    submitted: Set[str] = field(default_factory=set)
    missing: List[str] = field(default_factory=list)
    parent_ts: Optional[str] = None
    failed_stage: Optional[CheckState] = None
    error: Optional[str] = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        if self.dry_run:
            return self.state == CheckState.NAMES_RESOLVED
        return self.state == CheckState.PUBLISHED


def _fmt_window(window: Optional[AuditWindow], cfg: Config) -> str:
    if window is None:
        return "n/a"
    tz = cfg.tzinfo
    start = datetime.fromtimestamp(window.start, tz=tz).isoformat()
    end = datetime.fromtimestamp(window.end, tz=tz).isoformat()
    return f"{start} .. {end}"


async def run_check(
    cfg: Config,
    check: CheckConfig,
    slack: SlackAPI,
    *,
    notify_channel: Optional[str] = None,
    label: Optional[str] = None,
    now: Optional[datetime] = None,
    extractor: SubmitterExtractor = extract_first_mention,
    dry_run: bool = False,
    console: Optional[Console] = None,
) -> CheckResult:
    """
    Run one check direction end to end.

    Args:
        cfg:            Loaded Config object.
        check:          The direction to audit.
        slack:          Shared SlackAPI instance.
        notify_channel: Destination override (boot runs post to the test channel).
        label:          Label override used in logs and the report.
        now:            Reference instant; defaults to the current time.
        extractor:      Strategy that picks the submitter out of a message body.
        dry_run:        Print the report to the terminal instead of posting it.

    Returns:
        A CheckResult whose state is PUBLISHED on success (NAMES_RESOLVED for
        a dry run) or FAILED otherwise.
    """
    label = label or check.label
    channel_id = notify_channel or cfg.notify_channel
    tz = cfg.tzinfo
    now = (now or datetime.now(tz=tz)).astimezone(tz)

    result = CheckResult(label=label, channel_id=channel_id, dry_run=dry_run)
    stage = CheckState.WINDOW_COMPUTED

    try:
        # ── 1. Window ────────────────────────────────────────────────────────
        result.window = compute_window(check.cutoff_time, check.day_offset, tz, now=now)
        result.state = stage
        logger.info(
            "[%s] start check: report_channel=%s cutoff=%s window=%s",
            label, check.report_channel, check.cutoff_time, _fmt_window(result.window, cfg),
        )

        # ── 2. Targets ───────────────────────────────────────────────────────
        stage = CheckState.TARGETS_RESOLVED
        result.targets = await resolve_targets(slack, check.usergroup_id, cfg.exclude_user_ids)
        result.state = stage
        logger.info("[%s] %d target(s) in user group %s", label, len(result.targets), check.usergroup_id)

        # ── 3. History ───────────────────────────────────────────────────────
        stage = CheckState.HISTORY_FETCHED
        messages = await fetch_window_messages(slack, check.report_channel, result.window)
        result.message_count = len(messages)
        result.state = stage

        # ── 4. Reconcile ─────────────────────────────────────────────────────
        stage = CheckState.RECONCILED
        result.submitted = extract_submitted(messages, result.targets, extractor)
        result.missing = reconcile(result.targets, result.submitted)
        result.state = stage
        logger.info(
            "[%s] result: targets=%d messages=%d submitted=%d missing=%d",
            label, len(result.targets), result.message_count, len(result.submitted), len(result.missing),
        )

        # ── 5. Names ─────────────────────────────────────────────────────────
        stage = CheckState.NAMES_RESOLVED
        name_map = await build_name_map(slack)
        result.state = stage

        # ── 6. Publish ───────────────────────────────────────────────────────
        stage = CheckState.PUBLISHED
        summary = ReportSummary(
            label=label,
            report_date=result.window.report_date,
            as_of=now,
            targets_count=len(result.targets),
            submitted_count=len(result.submitted),
            admin_usergroup_id=cfg.admin_usergroup_id,
            workflow_url=check.workflow_url,
        )
        if dry_run:
            # Nothing is posted, so the check stops at NAMES_RESOLVED
            print_report(summary, result.missing, name_map, console=console)
        else:
            result.parent_ts = await publish_report(slack, channel_id, summary, result.missing, name_map)
            result.state = stage
    except Exception as e:
        result.state = CheckState.FAILED
        result.failed_stage = stage
        result.error = str(e)
        logger.exception(
            "[%s] check failed at %s: report_channel=%s notify_channel=%s window=%s",
            label, stage.value, check.report_channel, channel_id, _fmt_window(result.window, cfg),
        )

    return result
