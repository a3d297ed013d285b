"""
Which stored messages a user may read.

A message is visible to `user` when it is a public message, is addressed to
everyone, is addressed to `user`, or was sent by `user`.
"""
import re
from typing import List, Optional

from .exceptions import InvalidLimit
from .models import BROADCAST, MessageType
from .store import MESSAGES, Store

# plain decimal digits only: no sign, whitespace or underscores
_DIGITS = re.compile(r'[0-9]+')


def visibility_query(user: str) -> dict:
    return {'$or': [
        {'type': MessageType.MESSAGE.value},
        {'to': BROADCAST},
        {'to': user},
        {'from': user},
    ]}


def parse_limit(raw) -> Optional[int]:
    """None/'' and 0 mean no limit; anything else must be a positive integer."""
    if raw is None or raw == '':
        return None
    if isinstance(raw, int) and not isinstance(raw, bool):
        limit = raw
    elif isinstance(raw, str) and _DIGITS.fullmatch(raw):
        limit = int(raw)
    else:
        raise InvalidLimit(raw)
    if limit < 0:
        raise InvalidLimit(raw)
    return limit or None


def take_last(messages: List[dict], limit: Optional[int]) -> List[dict]:
    if not limit:
        return list(messages)
    return messages[-limit:]


async def visible_messages(store: Store, user: str) -> List[dict]:
    return await store.find(MESSAGES, visibility_query(user))


async def limited_view(store: Store, user: str, limit=None) -> List[dict]:
    """The last `limit` messages visible to `user`, oldest first."""
    # validated before touching the store
    limit = parse_limit(limit)
    return take_last(await visible_messages(store, user), limit)
