"""
App configuration — a small JSON file merged over built-in defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "maamulat.json"

# Default config (used if the JSON doesn't exist yet)
DEFAULT_CONFIG = {
    "db_path": str(Path(__file__).resolve().parent.parent / "maamulat.db"),
    "log_file": "maamulat.log",
    "log_level": "INFO",
    "default_level": "beginner",
    "user_name": "Your Name",
}


def load_config(path: Optional[Path] = None) -> dict:
    path = path or CONFIG_PATH
    merged = DEFAULT_CONFIG.copy()
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                cfg = json.load(f)
            if not isinstance(cfg, dict):
                raise ValueError("config root must be an object")
            merged.update({k: v for k, v in cfg.items() if k in DEFAULT_CONFIG})
        except (json.JSONDecodeError, ValueError, OSError):
            logger.warning("Bad config at %s, using defaults.", path)
            return DEFAULT_CONFIG.copy()
    return merged


def save_config(config: dict, path: Optional[Path] = None) -> None:
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Loads config/maamulat.json over DEFAULT_CONFIG. Unknown keys are dropped;
#   a broken file means defaults plus a warning.
#
# Data flow:
#   main.py -> load_config() -> setup_logging() + MaamulatApp.from_config()
