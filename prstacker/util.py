from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC timestamp, the format GitHub uses for commit dates."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def short_sha(sha: str) -> str:
    return sha[:7]
