import logging
import os
import sys
from pathlib import Path

from PySide6.QtGui import QIcon
from PySide6.QtWidgets import QApplication

from core.config import APP_NAME
from core.settings import default_settings_path, load_settings
from ui.main_window import MainWindow

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _asset_path(*parts: str) -> Path:
    # PyInstaller onefile extracts bundled files under sys._MEIPASS.
    if getattr(sys, "frozen", False):
        return Path(getattr(sys, "_MEIPASS")) / Path(*parts)
    return Path(__file__).resolve().parent / Path(*parts)


def _configure_logging(settings_level: str) -> None:
    name = (os.environ.get("PIXVIEW_LOG_LEVEL") or settings_level or "INFO").upper()
    level = getattr(logging, name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def main() -> int:
    settings_path = default_settings_path()
    settings = load_settings(str(settings_path))
    _configure_logging(settings.log_level)

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_NAME)

    logo_path = _asset_path("assets", "Logo.png")
    if logo_path.exists():
        app.setWindowIcon(QIcon(str(logo_path)))

    open_path = sys.argv[1] if len(sys.argv) > 1 else None
    w = MainWindow(settings=settings, settings_path=settings_path, open_path=open_path, logo_path=logo_path)
    w.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
