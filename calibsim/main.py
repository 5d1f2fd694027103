import logging
import sys
from pathlib import Path

from PySide6 import QtWidgets

from calibsim.app.app_settings_manager import AppSettingsManager
from calibsim.app.logging_setup import (
    LogSystem,
    apply_logging_policy,
    install_crash_handlers,
    install_qt_message_handler,
)
from calibsim.core.errors import SceneError
from calibsim.core.parameters import ParameterStore
from calibsim.scene.builder import build_scene
from calibsim.scene.registry import SceneRegistry
from calibsim.utils import resource_paths
from calibsim.viewers.scene_viewer import SceneViewer

logger = logging.getLogger(__name__)


def resolve_parameters_path(argv: list[str], settings: AppSettingsManager) -> Path:
    """Command line first, then the saved setting, then the bundled default."""
    if len(argv) > 1:
        return Path(argv[1])
    if settings.parameters_file:
        return Path(settings.parameters_file)
    return resource_paths.default_parameters_path()


def main():
    logs = LogSystem("calibsim")
    install_crash_handlers("calibsim")
    install_qt_message_handler()

    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication(sys.argv)

    logger.info("App start")
    settings_mgr = AppSettingsManager()
    apply_logging_policy(logs, settings_mgr)

    registry = SceneRegistry("simulate")
    app.aboutToQuit.connect(registry.close)
    app.aboutToQuit.connect(logs.stop)

    try:
        params_path = resolve_parameters_path(sys.argv, settings_mgr)
        params = ParameterStore.from_files(params_path, resource_paths.local_overrides_path())
        registry.open()
        scene = build_scene(params, registry)
    except SceneError as e:
        logger.error("Failed to build scene: %s", e)
        registry.close()
        logs.stop()
        sys.exit(2)

    viewer = SceneViewer(registry, settings_mgr)
    scene.camera.add_capture_callback(viewer.show_capture)

    try:
        rc = app.exec()
        logger.info("App exit (rc=%s)", rc)
        sys.exit(rc)
    finally:
        registry.close()
        logs.stop()


if __name__ == "__main__":
    main()
