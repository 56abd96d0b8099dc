from __future__ import annotations
import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from PySide6.QtCore import Qt, QThreadPool, QTimer
from PySide6.QtGui import QAction, QKeySequence, QIcon
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QFileDialog, QVBoxLayout, QHBoxLayout, QLabel, QMessageBox, QProgressBar
)

from core.config import APP_NAME, APP_VERSION, CONTROLS_HIDE_MS, SUPPORTED_EXTENSIONS
from core.errors import DirectoryReadFailure, ViewerError
from core.io import ImageFormat, SaveAction, load_image_rgba, save_target, write_image
from core.library import ImageLibrary
from core.saving import SaveCoordinator
from core.session import EditSession
from core.settings import AppSettings, save_settings
from core.text_overlay import TextOverlayState
from ui.canvas_widget import ViewerCanvas
from ui.editor_dialog import EditorDialog
from ui.thumbnail_strip import ThumbnailStrip
from ui.workers import FolderScanTask, SaveSignals

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        settings_path: Optional[Path] = None,
        open_path: Optional[str] = None,
        logo_path: Optional[Path] = None,
    ):
        super().__init__()
        if logo_path is not None and logo_path.exists():
            self.setWindowIcon(QIcon(str(logo_path)))
        self.setWindowTitle(APP_NAME)

        self.settings = settings if settings is not None else AppSettings()
        self._settings_path = settings_path
        self.library = ImageLibrary()
        self.saver = SaveCoordinator()
        self._scan_tasks: List[FolderScanTask] = []
        self._save_signals: Dict[SaveSignals, Tuple[Path, SaveAction]] = {}
        self._editor: Optional[EditorDialog] = None

        # Central
        self.canvas = ViewerCanvas(on_swipe=self._navigate, on_double_click=self._toggle_full_screen)
        self.canvas.setMouseTracking(True)

        self.name_label = QLabel(self.library.current_name)
        self.name_label.setAlignment(Qt.AlignCenter)
        self.name_label.setStyleSheet("font-weight: bold;")

        self.loading = QProgressBar()
        self.loading.setRange(0, 0)
        self.loading.setMaximumWidth(160)
        self.loading.hide()

        header = QHBoxLayout()
        header.addStretch(1)
        header.addWidget(self.name_label)
        header.addWidget(self.loading)
        header.addStretch(1)
        self._header = QWidget()
        self._header.setLayout(header)

        self.strip = ThumbnailStrip(
            on_select=self._select_index,
            thumb_size=(self.settings.thumb_w, self.settings.thumb_h),
        )

        central = QWidget()
        lay = QVBoxLayout()
        lay.setContentsMargins(0, 0, 0, 0)
        lay.addWidget(self._header)
        lay.addWidget(self.canvas, 1)
        lay.addWidget(self.strip)
        central.setLayout(lay)
        self.setCentralWidget(central)

        # Header and strip fade out after a few seconds without the mouse
        self._hide_timer = QTimer(self)
        self._hide_timer.setSingleShot(True)
        self._hide_timer.setInterval(CONTROLS_HIDE_MS)
        self._hide_timer.timeout.connect(self._hide_controls)

        # Menu
        self._build_menu()

        self.setAcceptDrops(True)
        self.resize(1200, 800)
        self._sync_ui()
        self.canvas.setFocus()

        start = open_path or self.settings.last_folder
        if start:
            self.open_path(start)

    # ---------------------------
    # Menu / Actions
    # ---------------------------
    def _build_menu(self) -> None:
        open_act = QAction("Open...", self)
        open_act.setShortcut(QKeySequence.StandardKey.Open)
        open_act.triggered.connect(self.open_file)

        open_folder_act = QAction("Open Folder...", self)
        open_folder_act.triggered.connect(self.open_folder)

        self._act_edit = QAction("Edit Image", self)
        self._act_edit.setShortcut("E")
        self._act_edit.triggered.connect(self.edit_current)

        self._act_delete = QAction("Move to Trash", self)
        self._act_delete.setShortcut(QKeySequence.StandardKey.Delete)
        self._act_delete.triggered.connect(self.delete_current)

        quit_act = QAction("Quit", self)
        quit_act.setShortcut(QKeySequence.StandardKey.Quit)
        quit_act.triggered.connect(self.close)

        about_act = QAction(f"About {APP_NAME}", self)
        about_act.triggered.connect(self._show_about)

        updates_act = QAction("Check for Updates...", self)
        updates_act.triggered.connect(self._check_for_updates)

        # Window-wide so arrows navigate whichever child has focus
        prev_act = QAction("Previous Image", self)
        prev_act.setShortcut(QKeySequence(Qt.Key_Left))
        prev_act.triggered.connect(lambda: self._navigate(-1))
        next_act = QAction("Next Image", self)
        next_act.setShortcut(QKeySequence(Qt.Key_Right))
        next_act.triggered.connect(lambda: self._navigate(1))
        self.addAction(prev_act)
        self.addAction(next_act)

        mfile = self.menuBar().addMenu("File")
        mfile.addAction(open_act)
        mfile.addAction(open_folder_act)
        mfile.addSeparator()
        mfile.addAction(self._act_edit)
        mfile.addAction(self._act_delete)
        mfile.addSeparator()
        mfile.addAction(quit_act)

        mhelp = self.menuBar().addMenu("Help")
        mhelp.addAction(about_act)
        mhelp.addAction(updates_act)

    def keyPressEvent(self, e) -> None:
        if e.key() == Qt.Key_Escape and self.isFullScreen():
            self._toggle_full_screen()
            e.accept()
            return
        super().keyPressEvent(e)

    def mouseMoveEvent(self, e) -> None:
        self._show_controls()
        super().mouseMoveEvent(e)

    def _show_controls(self) -> None:
        self._header.show()
        if len(self.library):
            self.strip.show()
        self._hide_timer.start()

    def _hide_controls(self) -> None:
        if self.isFullScreen():
            self._header.hide()
            self.strip.hide()

    def _toggle_full_screen(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()
        self._show_controls()

    def _show_error(self, exc: ViewerError) -> None:
        QMessageBox.critical(self, exc.title, exc.user_message)

    def _show_about(self) -> None:
        QMessageBox.information(
            self,
            f"About {APP_NAME}",
            f"{APP_NAME} is a lightweight image viewer and editor. Version {APP_VERSION}.",
        )

    def _check_for_updates(self) -> None:
        QMessageBox.information(self, "Check for Updates", f"You are running the latest version of {APP_NAME}.")

    # ---------------------------
    # Opening folders
    # ---------------------------
    def open_file(self) -> None:
        exts = " ".join(f"*.{e}" for e in sorted(SUPPORTED_EXTENSIONS))
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", self.settings.last_folder or "", f"Images ({exts});;All Files (*)"
        )
        if path:
            self.open_path(path)

    def open_folder(self) -> None:
        path = QFileDialog.getExistingDirectory(self, "Open Folder", self.settings.last_folder or "")
        if path:
            self.open_path(path)

    def open_path(self, path: str) -> None:
        """List the folder of ``path`` on the thread pool, selecting ``path`` if it is a file."""
        task = FolderScanTask(Path(path))
        task.signals.finished.connect(self._scan_finished)
        task.signals.failed.connect(self._scan_failed)
        self._scan_tasks.append(task)
        self.loading.show()
        QThreadPool.globalInstance().start(task)

    def _scan_done(self) -> None:
        self._scan_tasks = [t for t in self._scan_tasks if t.signals is not self.sender()]
        if not self._scan_tasks:
            self.loading.hide()

    def _scan_finished(self, folder: Path, paths: List[Path], selecting: Optional[Path]) -> None:
        self._scan_done()
        try:
            self.library.set_listing(folder, paths, selecting)
        except DirectoryReadFailure as exc:
            self._show_error(exc)
        self.settings.last_folder = str(folder)
        self._persist_settings()
        self._sync_ui()
        self.canvas.setFocus()

    def _scan_failed(self, message: str) -> None:
        self._scan_done()
        self._show_error(DirectoryReadFailure(message))

    # ---------------------------
    # Navigation
    # ---------------------------
    def _navigate(self, step: int) -> None:
        moved = self.library.next() if step > 0 else self.library.previous()
        if moved:
            self._sync_ui()

    def _select_index(self, index: int) -> None:
        if self.library.select(index):
            self._sync_ui()

    def _sync_ui(self) -> None:
        path = self.library.current_path
        self.name_label.setText(self.library.current_name)
        self._act_edit.setEnabled(path is not None)
        self._act_delete.setEnabled(path is not None)

        image: Optional[Image.Image] = None
        if path is not None:
            try:
                image = load_image_rgba(path)
            except (OSError, UnidentifiedImageError) as exc:
                logger.warning("Could not decode %s: %s", path, exc)
        self.canvas.set_image(image)

        if len(self.library):
            self.strip.show_window(self.library.paths, self.library.timeline_window(), self.library.current_index)
            self.strip.show()
        else:
            self.strip.hide()

    # ---------------------------
    # Delete
    # ---------------------------
    def delete_current(self) -> None:
        path = self.library.current_path
        if path is None:
            return
        answer = QMessageBox.question(
            self,
            "Move to Trash?",
            f"Are you sure you want to move '{path.name}' to the Trash?",
            QMessageBox.Yes | QMessageBox.Cancel,
            QMessageBox.Cancel,
        )
        if answer != QMessageBox.Yes:
            return
        try:
            removed = self.library.delete_current()
        except ViewerError as exc:
            self._show_error(exc)
            return
        if removed is not None:
            self.strip.forget(removed)
        self._sync_ui()

    # ---------------------------
    # Editing / saving
    # ---------------------------
    def _text_defaults(self) -> TextOverlayState:
        s = self.settings
        return TextOverlayState(
            font=s.text_font,
            size=s.text_size,
            color=s.text_color,
            background=s.text_background,
        )

    def edit_current(self) -> None:
        path = self.library.current_path
        if path is None:
            return
        # Never edit a file that is still being written
        self.saver.wait_for(path)
        try:
            image = load_image_rgba(path)
        except (OSError, UnidentifiedImageError) as exc:
            QMessageBox.critical(self, "Open failed", str(exc))
            return

        session = EditSession(path, image, text_defaults=self._text_defaults())
        self._editor = EditorDialog(
            session,
            on_save=self._save_edit,
            preferred_format=self.settings.save_format,
            parent=self,
        )
        try:
            self._editor.exec()
        finally:
            self._editor = None

    def _save_edit(self, session: EditSession, fmt: ImageFormat, action: SaveAction) -> None:
        final = session.bake()
        source = session.source_path
        target = save_target(source, fmt, action)

        signals = SaveSignals()
        signals.done.connect(self._save_finished)
        try:
            future = self.saver.submit(target, lambda: write_image(final, source, fmt, action))
        except ViewerError as exc:
            self._show_error(exc)
            return
        self._save_signals[signals] = (source, action)
        if self._editor is not None:
            self._editor.set_saving(True)
        future.add_done_callback(signals.done.emit)

    def _save_finished(self, future: Future) -> None:
        source, action = self._save_signals.pop(self.sender())
        editor = self._editor
        exc = future.exception()
        if exc is not None:
            if editor is not None:
                editor.set_saving(False)
            if isinstance(exc, ViewerError):
                self._show_error(exc)
            else:
                logger.error("Unexpected save failure for %s", source, exc_info=exc)
                QMessageBox.critical(self, "Save failed", str(exc))
            return

        written = future.result()
        self.settings.save_format = written.suffix[1:].lower()
        try:
            self.library.record_saved(source, written, action)
        except ViewerError as exc:
            self._show_error(exc)
        self.strip.forget(written)
        self._sync_ui()
        if editor is not None:
            editor.finish()

    # ---------------------------
    # Drag & drop support
    # ---------------------------
    def dragEnterEvent(self, e) -> None:
        if e.mimeData().hasUrls():
            e.acceptProposedAction()

    def dropEvent(self, e) -> None:
        urls = e.mimeData().urls()
        if not urls:
            return
        path = urls[0].toLocalFile()
        if path:
            self.open_path(path)

    # ---------------------------
    # Shutdown
    # ---------------------------
    def _persist_settings(self) -> None:
        if self._settings_path is None:
            return
        try:
            save_settings(str(self._settings_path), self.settings)
        except OSError as exc:
            logger.warning("Could not write settings %s: %s", self._settings_path, exc)

    def closeEvent(self, e) -> None:
        self._persist_settings()
        self.saver.shutdown(wait=True)
        super().closeEvent(e)
