"""
Scene parameter store.

A read-only key/value view over the parameters of a simulation run. Keys may
contain '/' to reach into nested maps (``camera_matrix/data``); a leading '/'
is ignored, so ``/world_frame_id`` and ``world_frame_id`` are the same key.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from calibsim.core.errors import (
    ConfigurationError,
    ConfigurationMissingError,
    InvalidParameterError,
    MalformedVectorError,
)
from calibsim.core.geometry import Color, Quaternion, Vector3, as_vector
from calibsim.utils.json_loader import deep_merge, read_json_dict

logger = logging.getLogger(__name__)

_MISSING = object()


class ParameterStore:
    """Typed, read-only access to scene parameters."""

    def __init__(self, data: Mapping[str, Any] | None = None, source: str = "<memory>"):
        self._data: dict[str, Any] = dict(data or {})
        self.source = source

    @classmethod
    def from_file(cls, path: str | Path) -> ParameterStore:
        """
        Load parameters from a JSON or YAML file.

        :param path: .json, .yaml or .yml file
        :return: ParameterStore
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(path.read_text(encoding="utf-8"))
            except FileNotFoundError as e:
                raise ConfigurationError(f"Parameter file missing: {path}") from e
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Failed to parse YAML from {path}: ({e})") from e
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise ConfigurationError(f"Parameter YAML must be a mapping at top-level: {path}")
        else:
            warnings: list[str] = []
            data = read_json_dict(path, strict=True, warnings=warnings, logger=logger)

        logger.info("Loaded %d top-level parameters from %s", len(data), path)
        return cls(data, source=str(path))

    @classmethod
    def from_files(cls, path: str | Path, override_path: str | Path | None = None) -> ParameterStore:
        """
        Load parameters from path, then deep-merge an optional JSON override file.

        A missing or broken override file is logged and ignored.
        """
        store = cls.from_file(path)
        if override_path is None or not Path(override_path).exists():
            return store

        warnings: list[str] = []
        override = read_json_dict(Path(override_path), strict=False, warnings=warnings, logger=logger)
        if override is None:
            return store
        logger.info("Applying parameter overrides from %s: %s", override_path, sorted(override))
        return cls(deep_merge(store._data, override), source=f"{store.source}+{override_path}")

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def _lookup(self, key: str) -> Any:
        key = key.lstrip("/")
        if key in self._data:
            return self._data[key]
        node: Any = self._data
        for part in key.split("/"):
            if not isinstance(node, Mapping) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get(self, key: str, default: Any = _MISSING) -> Any:
        """Return the raw value for key; raise ConfigurationMissingError if absent."""
        value = self._lookup(key)
        if value is _MISSING:
            if default is _MISSING:
                raise ConfigurationMissingError(key)
            return default
        return value

    def get_str(self, key: str, default: Any = _MISSING) -> str:
        return str(self.get(key, default))

    def get_int(self, key: str, default: Any = _MISSING) -> int:
        """Integer value for key; floats are accepted only when integral."""
        value = self.get(key, default)
        if isinstance(value, bool):
            raise InvalidParameterError(f"{key} must be an integer, got {value!r}")
        try:
            number = int(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidParameterError(f"{key} must be an integer, got {value!r}") from e
        if number != value:
            raise InvalidParameterError(f"{key} must be an integer, got {value!r}")
        return number

    def get_float(self, key: str, default: Any = _MISSING) -> float:
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{key} must be a number, got {value!r}") from e

    def get_vector(self, key: str, length: int | None = None) -> list[float]:
        """
        Return a list of floats stored under key.

        :param key: Parameter key
        :param length: Required length, or None for any length
        """
        value = self.get(key)
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise MalformedVectorError(f"{key} must be a list of numbers, got {value!r}")
        if length is not None:
            return list(as_vector(value, length, key))
        try:
            return [float(v) for v in value]
        except (TypeError, ValueError) as e:
            raise MalformedVectorError(f"{key} must be a list of numbers, got {value!r}") from e

    # Helpers for the message-like values used by the scene.
    def load_color(self, key: str) -> Color:
        return Color.from_sequence(self.get_vector(key, 4))

    def load_point(self, key: str) -> Vector3:
        return tuple(self.get_vector(key, 3))

    def load_orientation(self, key: str) -> Quaternion:
        return tuple(self.get_vector(key, 4))
