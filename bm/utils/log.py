import threading
from pathlib import Path
from typing import Optional, Any
from .time import now_local, today_local

# Set by setup_log_paths(); None means stdout only
LOG_DIR: Optional[Path] = None
BOT_LOG_PATH: Optional[Path] = None

_LOG_LOCK = threading.Lock()

def setup_log_paths(log_dir: Path, prefix: str = "bannermap") -> Path:
    """Point log_line at a daily file under log_dir. Returns the file path."""
    global LOG_DIR, BOT_LOG_PATH
    LOG_DIR = Path(log_dir)
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    BOT_LOG_PATH = LOG_DIR / f"{prefix}-{today_local()}.log"
    return BOT_LOG_PATH

def _append(path: Path, line: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(line + "\n")

def log_line(msg: Any) -> None:
    """
    Logging wrapper (single timestamp, readable):
    - Prefix every line with: YYYY-MM-DD // HH:MM:SS+09:00 -
    - Levels live in the message itself: "WARN | ...", "ERROR | ..."
    """
    line = str(msg).strip()

    with _LOG_LOCK:
        prefix = now_local().strftime("%Y-%m-%d // %H:%M:%S%z")
        if len(prefix) >= 5:
            prefix = prefix[:-2] + ":" + prefix[-2:]

        full = f"{prefix} - {line}" if line else f"{prefix} -"

        if BOT_LOG_PATH:
            _append(BOT_LOG_PATH, full)

        print(full, flush=True)
