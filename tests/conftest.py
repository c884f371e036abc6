"""Shared fixtures: a canned Slack client and a ready-made Config."""
from __future__ import annotations

import itertools
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from daily_report_watcher.config import CheckConfig, Config


def page(key: str, items: List, next_cursor: str = "") -> Dict:
    """One cursor-paginated Slack response."""
    return {"ok": True, key: items, "response_metadata": {"next_cursor": next_cursor}}


def message(text: str, ts: str = "1792180800.000100", user: Optional[str] = "UWORKFLOW") -> Dict:
    return {"type": "message", "ts": ts, "user": user, "text": text}


def make_client(
    members: Optional[List[str]] = None,
    history_pages: Optional[List[Dict]] = None,
    user_pages: Optional[List[Dict]] = None,
) -> AsyncMock:
    client = AsyncMock()
    client.usergroups_users_list.return_value = {"ok": True, "users": members or []}
    client.conversations_history.side_effect = history_pages or [page("messages", [])]
    client.users_list.side_effect = user_pages or [page("members", [])]

    counter = itertools.count(1)

    def _post(**kwargs):
        return {"ok": True, "channel": kwargs["channel"], "ts": f"1760760000.{next(counter):06d}"}

    client.chat_postMessage.side_effect = _post
    return client


def posted(client: AsyncMock) -> List[Dict]:
    """Keyword arguments of every chat_postMessage call, in order."""
    return [call.kwargs for call in client.chat_postMessage.await_args_list]


@pytest.fixture
def check_out() -> CheckConfig:
    return CheckConfig(
        label="checking-out",
        usergroup_id="S0TARGETS",
        report_channel="CREPORTS",
        cutoff_time="23:59",
        run_time="00:30",
        day_offset=-1,
        workflow_url="https://slack.com/shortcuts/Ft0001/abc",
    )


@pytest.fixture
def cfg(check_out: CheckConfig) -> Config:
    return Config(
        slack_bot_token="xoxb-test",
        notify_channel="CADMIN",
        checks=(check_out,),
        timezone="Asia/Tokyo",
        admin_usergroup_id="S0ADMINS",
    )
