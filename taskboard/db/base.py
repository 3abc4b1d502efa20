from datetime import datetime, timezone
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    # naive UTC everywhere so sqlite and postgres compare timestamps the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)
