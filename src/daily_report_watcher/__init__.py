"""Daily report watcher package."""

from .config import CheckConfig, Config, ConfigError, load_config
from .slack_client import SlackAPI, SlackMessage
from .window import AuditWindow, compute_window
from .logic import extract_first_mention, extract_submitted, reconcile, resolve_targets
from .directory import build_name_map, display_name_for
from .reporting import ReportSummary, publish_report
from .check_runner import CheckResult, CheckState, run_check

__all__ = [
    "CheckConfig",
    "Config",
    "ConfigError",
    "load_config",
    "SlackAPI",
    "SlackMessage",
    "AuditWindow",
    "compute_window",
    "extract_first_mention",
    "extract_submitted",
    "reconcile",
    "resolve_targets",
    "build_name_map",
    "display_name_for",
    "ReportSummary",
    "publish_report",
    "CheckResult",
    "CheckState",
    "run_check",
]
