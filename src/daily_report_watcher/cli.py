from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .check_runner import CheckResult, run_check
from .config import Config, ConfigError, load_config
from .scheduler import build_scheduler
from .slack_client import SlackAPI

logger = logging.getLogger("daily_report_watcher")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%Y-%m-%d %H:%M:%S]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load_or_exit(console: Console) -> Config:
    try:
        return load_config()
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)


def warn_on_soft_config(cfg: Config) -> None:
    """Log startup warnings for optional settings that degrade the reports."""
    if not cfg.admin_usergroup_id:
        logger.warning("ADMIN_USERGROUP_ID is not set; reports will not mention an admin group")
    if len(cfg.checks) == 1:
        logger.info("REPORT_CHANNEL_IN is not set; only the %s check is enabled", cfg.checks[0].label)


async def run_boot_check(cfg: Config, slack: SlackAPI) -> Optional[CheckResult]:
    """Run the first configured check once, posting to TEST_NOTIFY_CHANNEL.

    Refuses (with a warning) when no test channel is configured so a boot run
    can never reach the production audience.
    """
    if not cfg.test_notify_channel:
        logger.warning("RUN_ON_BOOT is set but TEST_NOTIFY_CHANNEL is not; skipping boot check")
        return None

    check = cfg.checks[0]
    return await run_check(
        cfg,
        check,
        slack,
        notify_channel=cfg.test_notify_channel,
        label=f"{check.label} (boot test)",
    )


async def serve(cfg: Config, slack: SlackAPI) -> None:
    scheduler = build_scheduler(cfg, slack)
    scheduler.start()

    if cfg.run_on_boot:
        await run_boot_check(cfg, slack)

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def main() -> None:
    """Start the watcher: schedule every check direction and wait forever."""
    console = Console()
    cfg = _load_or_exit(console)
    configure_logging(cfg.log_level)

    logger.info("daily-report-watcher boot: tz=%s run_on_boot=%s", cfg.timezone, cfg.run_on_boot)
    warn_on_soft_config(cfg)

    slack = SlackAPI(token=cfg.slack_bot_token)
    try:
        asyncio.run(serve(cfg, slack))
    except KeyboardInterrupt:
        logger.info("Shutting down")


def check() -> None:
    """Run one check immediately (CLI entry point)."""
    parser = argparse.ArgumentParser(description="Run a daily report check once")
    parser.add_argument(
        "--direction",
        default="out",
        help="Check to run: 'out', 'in', or a configured label (default: out)",
    )
    parser.add_argument(
        "--channel",
        default=None,
        help="Post to this channel instead of NOTIFY_CHANNEL",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the report instead of posting it",
    )
    args = parser.parse_args()

    console = Console()
    cfg = _load_or_exit(console)
    configure_logging(cfg.log_level)

    try:
        check_cfg = cfg.get_check(args.direction)
    except ConfigError as e:
        console.print(f"[bold red]{e}[/bold red]")
        sys.exit(2)

    slack = SlackAPI(token=cfg.slack_bot_token)
    result = asyncio.run(
        run_check(cfg, check_cfg, slack, notify_channel=args.channel, dry_run=args.dry_run, console=console)
    )
    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
