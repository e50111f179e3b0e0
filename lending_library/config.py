"""
config.py

Defaults for the lending library and resolution of the database location.
"""

from __future__ import annotations

import os
import pathlib
from typing import Optional, Union

# Configuration
DEFAULT_DB_FILE = "library_data.db"
DEFAULT_DATA_DIR = "data"
DB_ENV_VAR = "LENDING_LIBRARY_DB"
LOG_FORMAT = "%(levelname)s: %(message)s"
DEFAULT_LOG_LEVEL = "INFO"


def resolve_db_path(db_file: Optional[Union[str, pathlib.Path]] = None) -> pathlib.Path:
    """
    Work out which SQLite file to open.

    An explicit path wins, then the ``LENDING_LIBRARY_DB`` environment variable,
    then ``./data/library_data.db``. The parent directory is created so the
    first connection does not fail on a fresh checkout.
    """
    if db_file:
        path = pathlib.Path(db_file)
    elif os.environ.get(DB_ENV_VAR):
        path = pathlib.Path(os.environ[DB_ENV_VAR])
    else:
        path = pathlib.Path.cwd() / DEFAULT_DATA_DIR / DEFAULT_DB_FILE
    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
