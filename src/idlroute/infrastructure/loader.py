"""Loading the two startup inputs: the IDL file and the handler class."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Any

from idlroute.errors import ConfigurationError, HandlerBindingError


def read_idl_file(path: Path) -> str:
    """Return the text of the IDL file at *path*.

    Raises:
        ConfigurationError: The file does not exist or cannot be read.
    """
    if not path.is_file():
        raise ConfigurationError(f"Invalid IDL file '{path}'")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to read IDL file '{path}': {exc}") from exc


def load_handler_class(reference: str, *, search_path: Path | None = None) -> Any:
    """Import the object named by *reference*.

    Accepts ``package.module:Class`` or ``package.module.Class``.  When
    *search_path* is given it is put on ``sys.path`` first, the way
    ``uvicorn --app-dir`` does, so handlers next to the project config
    import without installation.

    Raises:
        HandlerBindingError: The module cannot be imported or lacks the name.
    """
    if ":" in reference:
        module_name, _, attr_path = reference.partition(":")
    else:
        module_name, _, attr_path = reference.rpartition(".")
    if not module_name or not attr_path:
        raise HandlerBindingError(
            f"Invalid handler reference '{reference}'; expected 'package.module:Class'"
        )

    if search_path is not None:
        entry = str(search_path.resolve())
        if entry not in sys.path:
            sys.path.insert(0, entry)

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise HandlerBindingError(f"Failed to load {reference}: {exc}") from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise HandlerBindingError(
                f"Failed to load {reference}: module '{module_name}' has no attribute '{attr}'"
            ) from exc
    return obj
