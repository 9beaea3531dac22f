from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from check_disk_usage.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfigPaths:
    path: Path


class ConfigService:
    """Loads option defaults from a JSON file.

    Keys are long option names, written with dashes or underscores
    (``"exclude-fs-type"`` and ``"exclude_fs_type"`` are the same key).
    """

    def __init__(self, paths: ConfigPaths | None = None) -> None:
        self.paths = paths or ConfigPaths(path=self.default_path())

    @staticmethod
    def default_path() -> Path:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        if xdg:
            base = Path(xdg)
        else:
            base = Path.home() / ".config"
        return base / "check_disk_usage" / "config.json"

    def load(self) -> dict[str, Any]:
        p = self.paths.path
        if not p.exists():
            return {}
        try:
            with open(p, "r", encoding="utf-8") as f:
                obj = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring config file %s: %s", p, e)
            return {}
        if not isinstance(obj, dict):
            logger.warning("Ignoring config file %s: top level is not an object", p)
            return {}
        return {str(k).replace("-", "_"): v for k, v in obj.items()}

    def defaults_for(self, known: Iterable[str]) -> dict[str, Any]:
        known = set(known)
        cfg = self.load()
        for key in sorted(set(cfg) - known):
            logger.warning("Ignoring unknown option %r in config file %s", key, self.paths.path)
        return {k: v for k, v in cfg.items() if k in known}
