"""Database column type helpers."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON, DateTime, TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JSONBCompat(TypeDecorator):
    """JSONB that falls back to native JSON on dialects like SQLite (for tests)."""

    impl = JSONB
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":  # pragma: no cover - dialect specific
            return dialect.type_descriptor(JSON())
        return dialect.type_descriptor(JSONB())


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime normalised to UTC on the way in and out.

    SQLite drops tzinfo, so values are converted to UTC before binding and
    naive results are tagged as UTC when loaded.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
