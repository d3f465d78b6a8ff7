"""Config file discovery.

Walk-up finder locates idlroute.toml, similar to how git finds .git/.
Supports IDLROUTE_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "idlroute.toml"
ENV_PREFIX = "IDLROUTE_"
ENV_NESTED_DELIMITER = "__"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG"


def env_var_for(key: str) -> str:
    """Environment variable overriding the dotted setting *key*.

    ``service.idl`` -> ``IDLROUTE_SERVICE__IDL``.
    """
    return ENV_PREFIX + ENV_NESTED_DELIMITER.join(part.upper() for part in key.split("."))


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for idlroute.toml.

    Returns the path to the config file, or None if not found.
    Checks IDLROUTE_CONFIG env var first; a path there that is not a file
    disables discovery rather than falling back to the walk-up.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
