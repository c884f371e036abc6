"""Resolve Slack user IDs to display names for reports.

Reports list people by name rather than ``<@U...>`` mentions so the missing
members are not pinged by the admin summary.
"""

from __future__ import annotations

from typing import Dict, Mapping

from .slack_client import SlackAPI


def display_name_for(user: Mapping) -> str:
    """Pick the best available name for a ``users.list`` member record."""
    profile = user.get("profile") or {}
    return (
        profile.get("display_name")
        or profile.get("real_name")
        or user.get("real_name")
        or user.get("name")
        or user.get("id")
        or ""
    )


async def build_name_map(slack: SlackAPI) -> Dict[str, str]:
    """Build a user ID -> display name map from the full workspace directory."""
    name_map: Dict[str, str] = {}
    for user in await slack.list_users():
        user_id = user.get("id")
        if not user_id:
            continue
        name_map[user_id] = display_name_for(user)
    return name_map


def lookup_name(name_map: Mapping[str, str], user_id: str) -> str:
    return name_map.get(user_id) or user_id
