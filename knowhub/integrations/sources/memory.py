"""
In-Memory Source Adapters

Serve a fixed list of records. Used for fixtures and for snapshots loaded
from disk.
"""

from typing import Any, Iterable, List, Optional

from knowhub.utils.helpers import record_field


class InMemorySourceAdapter:
    def __init__(self, records: Optional[Iterable[Any]] = None):
        self._records = list(records or [])

    async def list_all(self) -> List[Any]:
        return list(self._records)

    async def list_by_user(self, user_id: str) -> List[Any]:
        return [r for r in self._records if record_field(r, "user_id") == user_id]


class InMemoryRosterProvider:
    def __init__(self, users: Optional[Iterable[Any]] = None):
        self._users = list(users or [])

    async def list_all_users(self) -> List[Any]:
        return list(self._users)
