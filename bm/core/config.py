import os
from pathlib import Path
from typing import Dict, Any, Optional

from ..utils.files import load_json
from .constants import DEFAULT_HOST, DEFAULT_PORT, POLL_INTERVAL_S, REQUEST_TIMEOUT_S

# Files (relative to the working directory unless a root is given):
# - config.json   (tracked)      data_dir, log_dir, host, port, api_url, poll_interval_s, ...
# - secrets.json  (NOT tracked)  {"admin_token": "..."}

DEFAULTS: Dict[str, Any] = {
    "data_dir": "data",
    "log_dir": "logs",
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "api_url": f"http://localhost:{DEFAULT_PORT}",
    "poll_interval_s": POLL_INTERVAL_S,
    "request_timeout_s": REQUEST_TIMEOUT_S,
    "user_agent": None,
    "admin_token": None,
}

# env var -> (config key, type)
ENV_OVERRIDES = {
    "BM_DATA_DIR": ("data_dir", str),
    "BM_LOG_DIR": ("log_dir", str),
    "HOST": ("host", str),
    "PORT": ("port", int),
    "BM_API_URL": ("api_url", str),
    "BM_POLL_INTERVAL_S": ("poll_interval_s", float),
    "BM_ADMIN_TOKEN": ("admin_token", str),
}

def load_config(root: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Build the runtime config:
    DEFAULTS <- config.json <- secrets.json <- environment.
    Relative data_dir/log_dir are resolved against root.
    """
    import bm

    root = Path(root or ".").resolve()
    env = os.environ if env is None else env

    cfg = dict(DEFAULTS)
    cfg.update(load_json(root / "config.json", {}) or {})
    cfg.update(load_json(root / "secrets.json", {}) or {})

    for var, (key, cast) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            cfg[key] = cast(raw)
        except ValueError:
            raise ValueError(f"invalid value for {var}: {raw!r}") from None

    if not cfg.get("user_agent"):
        cfg["user_agent"] = f"BannerMap/{bm.__version__}"

    for key in ("data_dir", "log_dir"):
        p = Path(cfg[key])
        cfg[key] = p if p.is_absolute() else root / p

    return cfg
