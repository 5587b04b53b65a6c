from datetime import datetime, timezone
from zoneinfo import ZoneInfo

TZ_SEOUL = ZoneInfo("Asia/Seoul")

def now_local() -> datetime:
    return datetime.now(TZ_SEOUL)

def now_utc_iso() -> str:
    """UTC timestamp as stored on documents, e.g. 2025-05-01T09:30:00.123Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def today_local() -> str:
    return now_local().strftime("%Y-%m-%d")
