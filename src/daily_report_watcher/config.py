from __future__ import annotations

from dataclasses import dataclass, field
import os
import re
from typing import FrozenSet, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


# "HH:MM" values that mean "through the end of the report day".
END_OF_DAY_CUTOFFS: FrozenSet[str] = frozenset({"23:59", "24:00"})

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_TRUTHY = {"1", "true", "yes", "y"}


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


def is_end_of_day(cutoff: str) -> bool:
    return cutoff.strip() in END_OF_DAY_CUTOFFS


def parse_hhmm(value: str) -> Tuple[int, int]:
    """Parse an ``HH:MM`` string into ``(hour, minute)``.

    ``24:00`` is accepted as the end-of-day alias; any other hour outside
    0-23 is rejected.
    """
    match = _HHMM_RE.match((value or "").strip())
    if not match:
        raise ConfigError(f"Invalid time of day {value!r}, expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if (hour, minute) == (24, 0):
        return hour, minute
    if hour > 23 or minute > 59:
        raise ConfigError(f"Invalid time of day {value!r}, expected HH:MM")
    return hour, minute


@dataclass(frozen=True)
class CheckConfig:
    """Settings for one check direction (e.g. checking-out)."""
    label: str
    usergroup_id: str
    report_channel: str
    cutoff_time: str
    run_time: str
    day_offset: int = 0
    workflow_url: str = ""

    @property
    def run_hour_minute(self) -> Tuple[int, int]:
        return parse_hhmm(self.run_time)


@dataclass(frozen=True)
class Config:
    slack_bot_token: str
    notify_channel: str
    checks: Tuple[CheckConfig, ...]
    timezone: str = "Asia/Tokyo"
    admin_usergroup_id: Optional[str] = None  # mentioned at the top of each report
    exclude_user_ids: FrozenSet[str] = field(default_factory=frozenset)
    run_on_boot: bool = False
    test_notify_channel: Optional[str] = None  # required for RUN_ON_BOOT
    log_level: str = "INFO"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def get_check(self, direction: str) -> CheckConfig:
        """Return the check whose label or direction key matches ``direction``."""
        wanted = direction.strip().lower()
        aliases = {"out": 0, "in": 1}
        for check in self.checks:
            if check.label.lower() == wanted:
                return check
        if wanted in aliases and aliases[wanted] < len(self.checks):
            return self.checks[aliases[wanted]]
        raise ConfigError(f"No check configured for direction {direction!r}")


def _split_ids(raw: Optional[str]) -> FrozenSet[str]:
    if not raw:
        return frozenset()
    return frozenset(part for part in re.split(r"[\s,]+", raw) if part)


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Load configuration from environment variables / .env file.

    Pass ``environ`` to build a config from an explicit mapping instead of the
    process environment (the .env file is not read in that case).
    """

    if environ is None:
        load_dotenv()
        environ = os.environ

    def _get(name: str, default: str = "") -> str:
        return (environ.get(name) or default).strip()

    def _require(name: str) -> str:
        val = _get(name)
        if not val:
            raise ConfigError(f"Missing env: {name}")
        return val

    def _int_env(name: str, default: int) -> int:
        val = _get(name)
        if not val:
            return default
        try:
            return int(val)
        except ValueError as e:
            raise ConfigError(f"{name} must be an integer, got {val!r}") from e

    def _time_env(name: str, default: str) -> str:
        val = _get(name, default)
        parse_hhmm(val)
        return val

    slack_bot_token = _require("SLACK_BOT_TOKEN")
    usergroup_id = _require("USERGROUP_ID")
    notify_channel = _require("NOTIFY_CHANNEL")
    report_channel_out = _require("REPORT_CHANNEL_OUT")

    timezone = _get("TIMEZONE", "Asia/Tokyo")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown TIMEZONE {timezone!r}") from e

    checks: List[CheckConfig] = [
        CheckConfig(
            label=_get("LABEL_OUT", "checking-out"),
            usergroup_id=_get("USERGROUP_ID_OUT", usergroup_id),
            report_channel=report_channel_out,
            cutoff_time=_time_env("CUTOFF_TIME_OUT", "23:59"),
            run_time=_time_env("RUN_TIME_OUT", "00:30"),
            day_offset=_int_env("DAY_OFFSET_OUT", -1),
            workflow_url=_get("WORKFLOW_URL_OUT"),
        )
    ]

    # Checking-in is optional
    report_channel_in = _get("REPORT_CHANNEL_IN")
    if report_channel_in:
        checks.append(
            CheckConfig(
                label=_get("LABEL_IN", "checking-in"),
                usergroup_id=_get("USERGROUP_ID_IN", usergroup_id),
                report_channel=report_channel_in,
                cutoff_time=_time_env("CUTOFF_TIME_IN", "12:00"),
                run_time=_time_env("RUN_TIME_IN", "12:00"),
                day_offset=_int_env("DAY_OFFSET_IN", 0),
                workflow_url=_get("WORKFLOW_URL_IN"),
            )
        )

    for check in checks:
        if check.run_hour_minute == (24, 0):
            raise ConfigError(f"Run time for {check.label} cannot be 24:00")

    return Config(
        slack_bot_token=slack_bot_token,
        notify_channel=notify_channel,
        checks=tuple(checks),
        timezone=timezone,
        admin_usergroup_id=_get("ADMIN_USERGROUP_ID") or None,
        exclude_user_ids=_split_ids(_get("EXCLUDE_USER_IDS")),
        run_on_boot=_get("RUN_ON_BOOT", "false").lower() in _TRUTHY,
        test_notify_channel=_get("TEST_NOTIFY_CHANNEL") or None,
        log_level=_get("LOG_LEVEL", "INFO").upper(),
    )
