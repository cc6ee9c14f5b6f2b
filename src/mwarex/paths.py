"""Files that live beside the package rather than inside it (pyproject, Alembic)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from alembic.config import Config

ALEMBIC_INI = "alembic.ini"
ALEMBIC_DIR = "alembic"


@lru_cache(maxsize=1)
def get_repo_root() -> Path:
    """Nearest ancestor holding ``pyproject.toml``, else the working directory."""
    here = Path(__file__).resolve().parent
    return next((p for p in here.parents if (p / "pyproject.toml").is_file()), Path.cwd())


def alembic_config() -> "Config":
    """Alembic config with an absolute script location, usable from any cwd."""
    from alembic.config import Config

    root = get_repo_root()
    cfg = Config(str(root / ALEMBIC_INI))
    cfg.set_main_option("script_location", str(root / ALEMBIC_DIR))
    return cfg
