"""Resolve project paths (config, data, logs) independent of the working directory."""

import logging
from pathlib import Path

# logger.py imports this module, so use the stdlib accessor here
logger = logging.getLogger(__name__)


class PathResolver:
    """
    Maps logical names to absolute paths under the project root.
    Directory entries are created on first lookup.
    """

    # utility -> backdrop -> project root
    PROJECT_ROOT = Path(__file__).resolve().parents[2]
    PACKAGE_ROOT = Path(__file__).resolve().parents[1]

    DIR_MAP = {
        "root": PROJECT_ROOT,
        "config": PACKAGE_ROOT / "config",
        "settings": PACKAGE_ROOT / "config" / "settings.yml",
        "data": PROJECT_ROOT / "data",
        "logs": PROJECT_ROOT / "data" / "logs",
    }

    @classmethod
    def get(cls, name: str) -> Path:
        """Return the absolute path for ``name``, creating it if it is a directory."""
        if name not in cls.DIR_MAP:
            msg = f"Unknown directory key: '{name}'. Valid keys: {list(cls.DIR_MAP.keys())}"
            logger.error(msg)
            raise KeyError(msg)

        path = cls.DIR_MAP[name]
        if path.suffix == "":
            path.mkdir(parents=True, exist_ok=True)
        return path


class Finder:
    """Thin instance wrapper over PathResolver for call sites that hold helpers."""

    def get_directory(self, name: str) -> Path:
        """Return a resolved path by logical name."""
        return PathResolver.get(name)
