from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict

from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    VERBOSE = "verbose"

    def __str__(self):
        return self.value

    def __repr__(self):
        return self.value


# ----------------------
# Defaults
# ----------------------
DEFAULTS: Dict[str, Any] = {
    "general": {
        "run_mode": RunMode.PRODUCTION.value,
        "logging_level": "INFO",  # "DEBUG", "INFO", "WARNING", "ERROR"
        "parameters_file": "",    # empty -> settings/simulation.json
    },
    "interaction": {
        "rotation_step_deg": 0.5,   # target rotation per dragged pixel
        "drag_threshold_px": 3,     # movement before a press becomes a drag
    },
}


# ---------------------
# Data model
# ---------------------
@dataclass
class GeneralConfig:
    run_mode: RunMode = RunMode.PRODUCTION
    logging_level: str = "INFO"
    parameters_file: str = ""


@dataclass
class InteractionConfig:
    rotation_step_deg: float = 0.5
    drag_threshold_px: int = 3


@dataclass
class AppSettingsData:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)


# ----------------------
# Validation
# ----------------------
def _validate_run_mode(v: Any) -> RunMode:
    if isinstance(v, RunMode):
        return v
    try:
        return RunMode(str(v).strip().lower())
    except ValueError:
        return RunMode(DEFAULTS["general"]["run_mode"])


def _validate_logging_level(v: Any) -> str:
    v = str(v).upper()
    return v if v in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"


def _validate_rotation_step(v: Any) -> float:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return DEFAULTS["interaction"]["rotation_step_deg"]
    return f if (0 < f <= 10) else DEFAULTS["interaction"]["rotation_step_deg"]


def _validate_drag_threshold(v: Any) -> int:
    try:
        i = int(v)
    except (TypeError, ValueError):
        return DEFAULTS["interaction"]["drag_threshold_px"]
    return i if (0 <= i <= 50) else DEFAULTS["interaction"]["drag_threshold_px"]


# ---------------------
# AppSettingsManager
# ---------------------
class AppSettingsManager:
    """
    Application settings (not scene parameters).

    DEFAULTS are overridden by values stored in QSettings; every value is
    validated on load and out-of-range values fall back to the default.
    set_* writes through to QSettings immediately.
    """

    def __init__(self, org_domain: str = "calibsim.org", app_name: str = "calibsim"):
        self._settings = QSettings(org_domain, app_name)
        self._data = self._load_effective()

    @property
    def data(self) -> AppSettingsData:
        return self._data

    @property
    def run_mode(self) -> RunMode:
        return self._data.general.run_mode

    @property
    def dev_mode(self) -> bool:
        return self.run_mode is RunMode.DEVELOPMENT

    @property
    def logging_level(self) -> str:
        return self._data.general.logging_level

    @property
    def parameters_file(self) -> str:
        return self._data.general.parameters_file

    @property
    def rotation_step_deg(self) -> float:
        return self._data.interaction.rotation_step_deg

    @property
    def drag_threshold_px(self) -> int:
        return self._data.interaction.drag_threshold_px

    def set_run_mode(self, v: str | RunMode) -> None:
        mode = _validate_run_mode(v)
        self._settings.setValue("general/run_mode", mode.value)
        self._data.general.run_mode = mode

    def set_logging_level(self, v: str) -> None:
        level = _validate_logging_level(v)
        self._settings.setValue("general/logging_level", level)
        self._data.general.logging_level = level

    def set_parameters_file(self, path: str) -> None:
        self._settings.setValue("general/parameters_file", str(path))
        self._data.general.parameters_file = str(path)

    def set_rotation_step_deg(self, v: float) -> None:
        step = _validate_rotation_step(v)
        self._settings.setValue("interaction/rotation_step_deg", step)
        self._data.interaction.rotation_step_deg = step

    def set_drag_threshold_px(self, v: int) -> None:
        px = _validate_drag_threshold(v)
        self._settings.setValue("interaction/drag_threshold_px", px)
        self._data.interaction.drag_threshold_px = px

    def reset_all_to_default(self) -> None:
        self._settings.remove("general")
        self._settings.remove("interaction")
        self._data = self._load_effective()

    def to_dict(self) -> dict[str, Any]:
        data = {
            "general": asdict(self._data.general),
            "interaction": asdict(self._data.interaction),
        }
        data["general"]["run_mode"] = self._data.general.run_mode.value
        return data

    # ---------- internals ---------------
    def _load_effective(self) -> AppSettingsData:
        """DEFAULTS overridden by QSettings, validated and turned into the model."""
        g = dict(DEFAULTS["general"])
        it = dict(DEFAULTS["interaction"])

        for section, values in (("general", g), ("interaction", it)):
            for key in values:
                v = self._settings.value(f"{section}/{key}", None)
                if v is not None:
                    values[key] = v

        data = AppSettingsData(
            general=GeneralConfig(
                run_mode=_validate_run_mode(g["run_mode"]),
                logging_level=_validate_logging_level(g["logging_level"]),
                parameters_file=str(g["parameters_file"] or ""),
            ),
            interaction=InteractionConfig(
                rotation_step_deg=_validate_rotation_step(it["rotation_step_deg"]),
                drag_threshold_px=_validate_drag_threshold(it["drag_threshold_px"]),
            ),
        )
        logger.debug("Effective settings: %s", data)
        return data
