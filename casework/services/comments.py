"""Capped, timestamped comment log stored on each family"""
from datetime import datetime
from typing import List, Optional

DEFAULT_LIMIT = 5
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_comment(emoji: str, message: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return f"{stamp} {emoji} {message}"


def split_comments(log: Optional[str]) -> List[str]:
    if not log:
        return []
    return [line for line in str(log).split("\n") if line.strip()]


def add_comment(log: Optional[str], entry: str, limit: int = DEFAULT_LIMIT) -> str:
    """Prepend an entry, keeping only the newest `limit` lines"""
    entries = [entry] + split_comments(log)
    return "\n".join(entries[:limit])
