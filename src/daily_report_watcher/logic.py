from __future__ import annotations

import re
from typing import AbstractSet, Callable, Iterable, List, Optional, Set

from .slack_client import SlackAPI, SlackMessage
from .window import AuditWindow


# Slack user mention: <@U0123ABCD> or <@U0123ABCD|display>
MENTION_REGEX = re.compile(r"<@([A-Za-z0-9]+)(?:\|[^>]*)?>")

# Maps a message body to the identity of whoever submitted it, or None.
SubmitterExtractor = Callable[[str], Optional[str]]


def extract_first_mention(text: str, pattern: re.Pattern = MENTION_REGEX) -> Optional[str]:
    """Return the first user mentioned in ``text``.

    Report workflows put the reporter's own mention first in their template,
    so the first mention is taken to be the submitter. Later mentions are
    ignored.
    """
    if not text:
        return None
    match = pattern.search(text)
    return match.group(1) if match else None


async def resolve_targets(
    slack: SlackAPI,
    usergroup_id: str,
    exclude: AbstractSet[str] = frozenset(),
) -> List[str]:
    """Fetch the user group's members, drop excluded IDs, keep Slack's order."""
    members = await slack.list_usergroup_members(usergroup_id)
    seen: Set[str] = set()
    targets: List[str] = []
    for user_id in members:
        if user_id in exclude or user_id in seen:
            continue
        seen.add(user_id)
        targets.append(user_id)
    return targets


async def fetch_window_messages(slack: SlackAPI, channel_id: str, window: AuditWindow) -> List[SlackMessage]:
    """Collect every page of channel history inside the window before returning."""
    return [
        m async for m in slack.iter_channel_messages(channel_id, window.start, window.end + 1)
        if m.ts and window.contains(float(m.ts))
    ]


def extract_submitted(
    messages: Iterable[SlackMessage],
    targets: Iterable[str],
    extractor: SubmitterExtractor = extract_first_mention,
) -> Set[str]:
    """Return the deduplicated submitters found in ``messages`` that are targets.

    Messages without a mention contribute nothing, and mentions of people
    outside the target set are dropped.
    """
    submitters: Set[str] = set()
    for msg in messages:
        user_id = extractor(msg.text)
        if user_id:
            submitters.add(user_id)
    return submitters & set(targets)


def reconcile(targets: Iterable[str], submitted: AbstractSet[str]) -> List[str]:
    """missing = targets - submitted, in target order."""
    return [t for t in targets if t not in submitted]
