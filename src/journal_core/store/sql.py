"""Key-value store backed by the ``journal_kv`` table."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from journal_core.db.tables.kv import KeyValueRow


class SqlKeyValueStore:
    """Reads and writes rows through a caller-owned session.

    Each ``set``/``delete`` commits immediately so a later read from another
    session sees the change.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> str | None:
        return self.session.execute(
            select(KeyValueRow.value).where(KeyValueRow.key == key)
        ).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        row = self.session.get(KeyValueRow, key)
        now = datetime.now(timezone.utc)
        if row is None:
            self.session.add(KeyValueRow(key=key, value=value, updated_at=now))
        else:
            row.value = value
            row.updated_at = now
        self.session.commit()

    def delete(self, key: str) -> None:
        row = self.session.get(KeyValueRow, key)
        if row is not None:
            self.session.delete(row)
            self.session.commit()
