"""Loading CLI inputs into comparable values."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class InputLoadError(Exception):
    """Raised when a CLI input document cannot be read or parsed."""


def load_json_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise InputLoadError(f"input not found: {path}") from error
    except OSError as error:
        raise InputLoadError(f"cannot read {path}: {error}") from error
    except UnicodeDecodeError as error:
        raise InputLoadError(f"cannot decode {path}: {error}") from error

    try:
        return json.loads(text)
    except json.JSONDecodeError as error:
        raise InputLoadError(f"invalid JSON in {path}: {error}") from error
