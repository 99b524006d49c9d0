from datetime import datetime, timezone


def utcnow() -> datetime:
    # Timestamps are bound timezone-aware
    return datetime.now(timezone.utc)
