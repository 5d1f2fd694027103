"""Error types raised while building and driving a simulated scene."""
from __future__ import annotations


class SceneError(RuntimeError):
    """Base class for every error raised by calibsim."""


class ConfigurationError(SceneError):
    """Raised when scene parameters cannot be turned into scene objects."""


class ConfigurationMissingError(ConfigurationError, KeyError):
    """A required parameter key is absent."""

    def __init__(self, key: str):
        super().__init__(f"Missing required parameter: {key}")
        self.key = key

    def __str__(self) -> str:
        return self.args[0]


class MalformedVectorError(ConfigurationError, ValueError):
    """A position, color, matrix or coefficient vector has the wrong shape."""


class InvalidParameterError(ConfigurationError, ValueError):
    """A scalar parameter is outside its valid range."""


class UnsupportedDistortionModelError(ConfigurationError):
    """The distortion model name is not one we know how to read."""

    def __init__(self, model: str):
        super().__init__(f"Unknown camera distortion model specified: {model!r}")
        self.model = model


class RegistryError(SceneError):
    """Base class for registry misuse."""


class DuplicateEntityNameError(RegistryError):
    """An entity with the same name is already registered."""

    def __init__(self, frame_id: str, name: str):
        super().__init__(f"Entity name already registered: {name!r} (frame {frame_id!r})")
        self.frame_id = frame_id
        self.name = name


class RegistryClosedError(RegistryError):
    """The registry was used before open() or after close()."""


class UnknownEntityError(RegistryError, KeyError):
    """No entity is registered under the given id."""

    def __str__(self) -> str:
        return self.args[0] if self.args else ""
