"""Locate ``prolink.toml``.

``PROLINK_CONFIG`` names the file outright. Otherwise the nearest
``prolink.toml`` in the starting directory or any ancestor wins, so a
command run anywhere inside a data root picks up that root's settings.
An explicit ``--config`` path bypasses this module.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "prolink.toml"
CONFIG_ENV_VAR = "PROLINK_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file that applies at *start* (default: cwd), or None.

    A ``PROLINK_CONFIG`` pointing at a missing file yields None rather
    than falling back to the directory search.
    """
    if override := os.environ.get(CONFIG_ENV_VAR):
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    return next(
        (d / CONFIG_FILENAME for d in (here, *here.parents) if (d / CONFIG_FILENAME).is_file()),
        None,
    )
