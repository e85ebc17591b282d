"""Resolve important filesystem paths relative to the backend root."""

from pathlib import Path


class PathResolver:
    """
    Folder resolver that returns paths relative to the backend root,
    independent of the current working directory.
    """

    # utility -> forma -> backend
    BACKEND_ROOT = Path(__file__).resolve().parents[2]
    PACKAGE_ROOT = Path(__file__).resolve().parents[1]

    DIR_MAP = {
        "data": BACKEND_ROOT / "data",
        "logs": BACKEND_ROOT / "data" / "logs",
        "config": PACKAGE_ROOT / "config",
        "templates": PACKAGE_ROOT / "config" / "templates.yml",
        "env": BACKEND_ROOT / ".env",
        "root": BACKEND_ROOT,
    }

    # Directories that are created on first lookup. Package directories are
    # never created, they ship with the code.
    CREATE_ON_LOOKUP = ("data", "logs")

    @classmethod
    def get(cls, name: str) -> Path:
        """
        Returns absolute path from name key.
        Ensures runtime directories exist.
        """
        if name not in cls.DIR_MAP:
            raise KeyError(
                f"Unknown directory key: '{name}'. Valid keys: {list(cls.DIR_MAP.keys())}"
            )

        path = cls.DIR_MAP[name]
        if name in cls.CREATE_ON_LOOKUP:
            path.mkdir(parents=True, exist_ok=True)
        return path


class Finder:
    """Thin wrapper exposing resolved directories for external callers."""

    def get_directory(self, name: str) -> Path:
        """Return a resolved path by logical name."""
        return PathResolver.get(name)
