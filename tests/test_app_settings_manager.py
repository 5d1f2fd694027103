import sys

import pytest
from PySide6.QtCore import QCoreApplication, QSettings

from calibsim.app.app_settings_manager import AppSettingsManager, RunMode


pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="QSettings uses the registry on Windows")


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def settings_mgr(qapp, tmp_path):
    """AppSettingsManager whose QSettings live in a temporary INI tree."""
    for fmt in (QSettings.NativeFormat, QSettings.IniFormat):
        QSettings.setPath(fmt, QSettings.UserScope, str(tmp_path))
    mgr = AppSettingsManager("calibsim-test.org", "calibsim-test")
    yield mgr
    mgr.reset_all_to_default()


def test_defaults(settings_mgr):
    assert settings_mgr.run_mode is RunMode.PRODUCTION
    assert not settings_mgr.dev_mode
    assert settings_mgr.logging_level == "INFO"
    assert settings_mgr.parameters_file == ""
    assert settings_mgr.rotation_step_deg == 0.5
    assert settings_mgr.drag_threshold_px == 3


def test_setters_persist(settings_mgr):
    settings_mgr.set_run_mode("development")
    settings_mgr.set_logging_level("debug")
    settings_mgr.set_parameters_file("/tmp/scene.yaml")
    settings_mgr.set_rotation_step_deg(2)
    settings_mgr.set_drag_threshold_px(10)

    reloaded = AppSettingsManager("calibsim-test.org", "calibsim-test")
    assert reloaded.dev_mode
    assert reloaded.logging_level == "DEBUG"
    assert reloaded.parameters_file == "/tmp/scene.yaml"
    assert reloaded.rotation_step_deg == 2.0
    assert reloaded.drag_threshold_px == 10


@pytest.mark.parametrize("step", [0, -1, 11, "fast"])
def test_invalid_rotation_step_falls_back(settings_mgr, step):
    settings_mgr.set_rotation_step_deg(step)
    assert settings_mgr.rotation_step_deg == 0.5


@pytest.mark.parametrize("px", [-1, 51, None])
def test_invalid_drag_threshold_falls_back(settings_mgr, px):
    settings_mgr.set_drag_threshold_px(px)
    assert settings_mgr.drag_threshold_px == 3


def test_invalid_run_mode_and_level_fall_back(settings_mgr):
    settings_mgr.set_run_mode("turbo")
    settings_mgr.set_logging_level("LOUD")
    assert settings_mgr.run_mode is RunMode.PRODUCTION
    assert settings_mgr.logging_level == "INFO"


def test_reset_and_to_dict(settings_mgr):
    settings_mgr.set_run_mode(RunMode.VERBOSE)
    assert settings_mgr.to_dict()["general"]["run_mode"] == "verbose"
    settings_mgr.reset_all_to_default()
    assert settings_mgr.to_dict() == {
        "general": {"run_mode": "production", "logging_level": "INFO", "parameters_file": ""},
        "interaction": {"rotation_step_deg": 0.5, "drag_threshold_px": 3},
    }
