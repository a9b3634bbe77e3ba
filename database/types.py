"""Column types with dialect compatibility."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer

# SQLite only autoincrements "INTEGER PRIMARY KEY"
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_values(enum_cls) -> list[str]:
    """Store enum members by value (``"pending"``) rather than by name."""
    return [member.value for member in enum_cls]
