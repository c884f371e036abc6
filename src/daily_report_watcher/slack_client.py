from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient


@dataclass
class SlackMessage:
    channel: str
    ts: str
    user: Optional[str]
    text: str


class SlackAPI:
    """Thin async wrapper over Slack's AsyncWebClient for the operations we need.

    One instance is shared by every check; the underlying client keeps no
    per-request state, so concurrent checks can use it safely.
    """

    def __init__(self, token: Optional[str] = None, client: Optional[AsyncWebClient] = None) -> None:
        if client is None:
            if not token:
                raise ValueError("SlackAPI needs either a token or a client")
            client = AsyncWebClient(token=token)
        self.client = client

    async def list_usergroup_members(self, usergroup_id: str) -> List[str]:
        """Return the user IDs of a user group, in the order Slack lists them."""
        try:
            resp = await self.client.usergroups_users_list(usergroup=usergroup_id)
        except SlackApiError as e:
            raise RuntimeError(
                f"Failed to list members of user group {usergroup_id}: {e.response.get('error', 'unknown')}"
            ) from e
        return list(resp.get("users") or [])

    async def iter_channel_messages(
        self, channel_id: str, oldest: float, latest: float
    ) -> AsyncIterator[SlackMessage]:
        """Yield every message in a channel with oldest <= ts < latest."""

        cursor: Optional[str] = None
        while True:
            try:
                resp = await self.client.conversations_history(
                    channel=channel_id,
                    oldest=str(oldest),
                    latest=str(latest),
                    limit=200,
                    cursor=cursor,
                )
            except SlackApiError as e:
                raise RuntimeError(
                    f"Failed to fetch history for channel {channel_id}: {e.response.get('error', 'unknown')}"
                ) from e

            for m in resp.get("messages") or []:
                yield SlackMessage(
                    channel=channel_id,
                    ts=m.get("ts", ""),
                    user=m.get("user"),
                    text=m.get("text") or "",
                )

            cursor = (resp.get("response_metadata") or {}).get("next_cursor") or None
            if not cursor:
                break

    async def list_users(self) -> List[Dict]:
        """Return every member record of the workspace directory."""

        members: List[Dict] = []
        cursor: Optional[str] = None
        while True:
            try:
                resp = await self.client.users_list(limit=200, cursor=cursor)
            except SlackApiError as e:
                raise RuntimeError(f"Failed to list users: {e.response.get('error', 'unknown')}") from e

            members.extend(resp.get("members") or [])

            cursor = (resp.get("response_metadata") or {}).get("next_cursor") or None
            if not cursor:
                break

        return members

    async def post_message(self, channel_id: str, text: str, thread_ts: Optional[str] = None) -> str:
        """Post a message (optionally as a thread reply) and return its ts."""
        try:
            resp = await self.client.chat_postMessage(
                channel=channel_id,
                text=text,
                thread_ts=thread_ts,
                unfurl_links=False,
                unfurl_media=False,
            )
        except SlackApiError as e:
            raise RuntimeError(
                f"Failed to post message to channel {channel_id}: {e.response.get('error', 'unknown')}"
            ) from e
        return resp["ts"]
