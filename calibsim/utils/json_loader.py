from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

from calibsim.core.errors import ConfigurationError


class ParameterFileError(ConfigurationError):
    """Raised when strict parameter file loading fails."""


def deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge dictionaries (override wins)."""
    out: dict[str, Any] = dict(base)
    for k, v in override.items():
        if isinstance(v, Mapping) and isinstance(out.get(k), Mapping):
            out[k] = deep_merge(dict(out[k]), v)
        else:
            out[k] = v
    return out


def _fail(
        msg: str,
        *,
        strict: bool,
        warnings: list[str],
        logger: Any = None,
        exc: Exception | None = None,
        level: str = "warning",
) -> Optional[dict[str, Any]]:
    """Centralized failure handler: raises ParameterFileError when strict=True,
    otherwise records the message, logs it at the requested level and returns
    None so the caller can fall back.
    """
    if strict:
        raise ParameterFileError(msg) from exc
    warnings.append(msg)
    if logger is not None:
        if exc is not None and level == "exception":
            logger.exception(msg)
        else:
            getattr(logger, level, logger.warning)(msg)
    return None


def _parse_json(text: str, path: Path) -> dict[str, Any]:
    """Parse JSON text; the top-level value must be an object."""
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ParameterFileError(f"Parameter JSON must be an object at top-level: {path}")
    return data


def read_json_dict(
        path: Path,
        *,
        strict: bool,
        warnings: list[str],
        logger: Any = None,
) -> Optional[dict[str, Any]]:
    """
    Read a JSON file and return its top-level object.

    Behavior:
    - strict=True: missing/broken/non-object -> raise ParameterFileError
    - strict=False: return None and record warnings (and log if logger given)
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        return _fail(f"Parameter file missing: {path}",
                     strict=strict, warnings=warnings, logger=logger, exc=e)
    except OSError as e:
        return _fail(f"Failed to read JSON from {path}: ({e})",
                     strict=strict, warnings=warnings, logger=logger, exc=e,
                     level="exception")

    try:
        return _parse_json(text, path)
    except json.JSONDecodeError as e:
        return _fail(f"Failed to parse JSON from {path}: ({e})",
                     strict=strict, warnings=warnings, logger=logger, exc=e)
    except ParameterFileError as e:
        return _fail(str(e), strict=strict, warnings=warnings, logger=logger, exc=e, level="error")
