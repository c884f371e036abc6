import pytest

from daily_report_watcher.config import ConfigError, is_end_of_day, load_config, parse_hhmm

BASE_ENV = {
    "SLACK_BOT_TOKEN": "xoxb-test",
    "USERGROUP_ID": "S0TARGETS",
    "NOTIFY_CHANNEL": "CADMIN",
    "REPORT_CHANNEL_OUT": "CREPORTS",
}


def test_defaults_with_only_required_settings():
    cfg = load_config(BASE_ENV)

    assert cfg.timezone == "Asia/Tokyo"
    assert cfg.admin_usergroup_id is None
    assert cfg.run_on_boot is False
    assert cfg.test_notify_channel is None
    assert len(cfg.checks) == 1
    out = cfg.checks[0]
    assert out.label == "checking-out"
    assert out.usergroup_id == "S0TARGETS"
    assert out.cutoff_time == "23:59"
    assert is_end_of_day(out.cutoff_time)
    assert out.run_hour_minute == (0, 30)
    assert out.day_offset == -1


@pytest.mark.parametrize("missing", sorted(BASE_ENV))
def test_missing_required_setting_is_fatal(missing):
    env = {k: v for k, v in BASE_ENV.items() if k != missing}

    with pytest.raises(ConfigError, match=missing):
        load_config(env)


def test_check_in_direction_is_optional_and_configurable():
    env = {
        **BASE_ENV,
        "REPORT_CHANNEL_IN": "CCHECKIN",
        "CUTOFF_TIME_IN": "10:30",
        "RUN_TIME_IN": "10:45",
        "USERGROUP_ID_IN": "S0MORNING",
        "WORKFLOW_URL_IN": "https://example.com/in",
    }

    cfg = load_config(env)

    assert [c.label for c in cfg.checks] == ["checking-out", "checking-in"]
    check_in = cfg.get_check("in")
    assert check_in.usergroup_id == "S0MORNING"
    assert check_in.cutoff_time == "10:30"
    assert check_in.run_hour_minute == (10, 45)
    assert check_in.day_offset == 0
    assert cfg.get_check("checking-out") is cfg.checks[0]


def test_unknown_direction():
    with pytest.raises(ConfigError):
        load_config(BASE_ENV).get_check("in")


def test_optional_settings():
    env = {
        **BASE_ENV,
        "TIMEZONE": "Europe/Berlin",
        "ADMIN_USERGROUP_ID": "S0ADMINS",
        "EXCLUDE_USER_IDS": "UBOT1, UBOT2  UMGR",
        "RUN_ON_BOOT": "TRUE",
        "TEST_NOTIFY_CHANNEL": "CTEST",
        "LOG_LEVEL": "debug",
    }

    cfg = load_config(env)

    assert cfg.tzinfo.key == "Europe/Berlin"
    assert cfg.admin_usergroup_id == "S0ADMINS"
    assert cfg.exclude_user_ids == frozenset({"UBOT1", "UBOT2", "UMGR"})
    assert cfg.run_on_boot is True
    assert cfg.test_notify_channel == "CTEST"
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name,value",
    [
        ("CUTOFF_TIME_OUT", "25:00"),
        ("CUTOFF_TIME_OUT", "noon"),
        ("RUN_TIME_OUT", "24:00"),
        ("DAY_OFFSET_OUT", "yesterday"),
        ("TIMEZONE", "Mars/Olympus_Mons"),
    ],
)
def test_malformed_values_are_fatal(name, value):
    with pytest.raises(ConfigError):
        load_config({**BASE_ENV, name: value})


def test_parse_hhmm():
    assert parse_hhmm("09:05") == (9, 5)
    assert parse_hhmm("9:05") == (9, 5)
    assert parse_hhmm("24:00") == (24, 0)
    with pytest.raises(ConfigError):
        parse_hhmm("12:60")


def test_end_of_day_cutoffs():
    assert is_end_of_day("23:59")
    assert is_end_of_day(" 24:00 ")
    assert not is_end_of_day("23:58")
