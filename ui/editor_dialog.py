from __future__ import annotations
from typing import Callable, Optional, Tuple

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QColorDialog, QComboBox, QDialog, QGroupBox, QHBoxLayout, QLabel, QLineEdit, QMenu,
    QPushButton, QScrollArea, QSlider, QVBoxLayout, QWidget
)

from core.compositor import render_text_badge
from core.config import FONT_CHOICES, TEXT_SIZE_MAX, TEXT_SIZE_MIN
from core.crop import Handle
from core.filters import FilterType
from core.geometry import Point, Rect, Size
from core.io import ImageFormat, SaveAction, ordered_formats
from core.session import EditSession
from ui.canvas_widget import CropCanvas, EditCanvas

RGBA = Tuple[int, int, int, int]


def _qcolor(rgba: RGBA) -> QColor:
    return QColor(*rgba)


def _rgba(c: QColor) -> RGBA:
    return (c.red(), c.green(), c.blue(), c.alpha())


class CropDialog(QDialog):
    """Modal crop tool over the session's working image. Cancel leaves it untouched."""

    def __init__(self, session: EditSession, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Crop")
        self.setMinimumSize(800, 600)
        self.session = session
        session.open_crop()

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        apply_btn = QPushButton("Apply Crop")
        apply_btn.setDefault(True)
        apply_btn.clicked.connect(self.accept)

        top = QHBoxLayout()
        top.addWidget(cancel_btn)
        top.addStretch(1)
        self.size_label = QLabel()
        top.addWidget(self.size_label)
        top.addStretch(1)
        top.addWidget(apply_btn)

        self.canvas = CropCanvas(
            get_state=lambda: self.session.crop,
            on_drag_start=self._drag_start,
            on_drag=self._drag,
            on_drag_end=self._drag_end,
        )
        self.canvas.set_image(session.image)

        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.addLayout(top)
        lay.addWidget(self.canvas, 1)
        self._update_label()

    def _drag_start(self, handle: Handle) -> None:
        self.session.crop_begin(handle)

    def _drag(self, dx: float, dy: float, display_rect: Rect) -> None:
        self.session.crop_drag((dx, dy), display_rect)
        self._update_label()

    def _drag_end(self) -> None:
        self.session.crop_end()

    def _update_label(self) -> None:
        crop = self.session.crop
        if crop is not None:
            self.size_label.setText(f"{int(round(crop.rect.width))} × {int(round(crop.rect.height))} px")

    def accept(self) -> None:
        self.session.apply_crop()
        super().accept()

    def reject(self) -> None:
        self.session.cancel_crop()
        super().reject()


class EditorDialog(QDialog):
    """
    Edit sheet: filter picker, crop tool, text overlay, save menu.
    Calls on_save(session, format, action) when the user picks a save option;
    the caller owns writing and closing.
    """
    def __init__(
        self,
        session: EditSession,
        on_save: Callable[[EditSession, ImageFormat, SaveAction], None],
        preferred_format: Optional[str] = None,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setWindowTitle(f"Edit: {session.source_path.name}")
        self.setMinimumSize(800, 600)
        self.resize(1100, 750)
        self.session = session
        self._on_save = on_save

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        title = QLabel("Edit Mode")
        title.setStyleSheet("font-weight: bold;")
        self.save_btn = QPushButton("Save...")
        self.save_btn.setMenu(self._build_save_menu(preferred_format))

        top = QHBoxLayout()
        top.addWidget(cancel_btn)
        top.addStretch(1)
        top.addWidget(title)
        top.addStretch(1)
        top.addWidget(self.save_btn)

        self.canvas = EditCanvas(on_resized=self._on_canvas_resized, on_text_drag=self._on_text_drag)

        body = QHBoxLayout()
        body.addWidget(self.canvas, 1)
        body.addWidget(self._build_tools(), 0)

        lay = QVBoxLayout(self)
        lay.addLayout(top)
        lay.addLayout(body, 1)

        self._refresh_image()

    # ---------------------------
    # Tools sidebar
    # ---------------------------
    def _make_group(self, title: str) -> tuple[QGroupBox, QVBoxLayout]:
        g = QGroupBox(title)
        gl = QVBoxLayout(g)
        return g, gl

    def _build_tools(self) -> QWidget:
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFixedWidth(300)
        panel = QWidget()
        v = QVBoxLayout(panel)

        g_filter, gl_filter = self._make_group("Filters")
        self.filter_combo = QComboBox()
        for ftype in FilterType:
            self.filter_combo.addItem(ftype.label, userData=ftype)
        self.filter_combo.currentIndexChanged.connect(self._on_filter_changed)
        gl_filter.addWidget(self.filter_combo)
        v.addWidget(g_filter)

        g_crop, gl_crop = self._make_group("Crop")
        crop_btn = QPushButton("Open Crop Tool")
        crop_btn.clicked.connect(self._open_crop)
        gl_crop.addWidget(crop_btn)
        v.addWidget(g_crop)

        g_text, gl_text = self._make_group("Text Overlay")
        text = self.session.text
        self.text_edit = QLineEdit(text.text)
        self.text_edit.setPlaceholderText("Enter text...")
        self.text_edit.textChanged.connect(self._on_text_changed)
        gl_text.addWidget(self.text_edit)

        self.font_combo = QComboBox()
        for label, font in FONT_CHOICES:
            self.font_combo.addItem(label, userData=font)
        idx = self.font_combo.findData(text.font)
        if idx >= 0:
            self.font_combo.setCurrentIndex(idx)
        self.font_combo.currentIndexChanged.connect(self._on_style_changed)
        gl_text.addWidget(self.font_combo)

        self.color_btn = QPushButton("Text Color")
        self.color_btn.clicked.connect(lambda: self._pick_color("color"))
        gl_text.addWidget(self.color_btn)

        self.size_label = QLabel()
        self.size_slider = QSlider(Qt.Horizontal)
        self.size_slider.setRange(TEXT_SIZE_MIN, TEXT_SIZE_MAX)
        self.size_slider.setValue(int(round(text.size)))
        self.size_slider.valueChanged.connect(self._on_style_changed)
        gl_text.addWidget(self.size_label)
        gl_text.addWidget(self.size_slider)

        self.bg_btn = QPushButton("Background Color")
        self.bg_btn.clicked.connect(lambda: self._pick_color("background"))
        gl_text.addWidget(self.bg_btn)
        v.addWidget(g_text)

        v.addStretch(1)
        scroll.setWidget(panel)
        self._update_style_widgets()
        return scroll

    def _build_save_menu(self, preferred_format: Optional[str]) -> QMenu:
        menu = QMenu(self)
        for fmt in ordered_formats(preferred_format):
            label = fmt.value.upper()
            menu.addAction(f"Save as New {label}", lambda f=fmt: self._save(f, SaveAction.CREATE_NEW))
            menu.addAction(f"Replace with {label}", lambda f=fmt: self._save(f, SaveAction.REPLACE))
        return menu

    # ---------------------------
    # Session plumbing
    # ---------------------------
    def _refresh_image(self) -> None:
        self.canvas.set_image(self.session.preview_image())
        self._refresh_text()

    def _refresh_text(self) -> None:
        text = self.session.text
        self.canvas.set_text_badge(render_text_badge(text), text.anchor)

    def _update_style_widgets(self) -> None:
        text = self.session.text
        self.size_label.setText(f"Size: {int(round(text.size))}")
        self.color_btn.setStyleSheet(f"background-color: {_qcolor(text.color).name()};")
        self.bg_btn.setStyleSheet(f"background-color: {_qcolor(text.background).name()};")

    def _on_canvas_resized(self, size: Size) -> None:
        self.session.set_container_size(size)
        self._refresh_text()

    def _on_text_drag(self, location: Point) -> None:
        self.session.drag_text(location)
        self._refresh_text()

    def _on_filter_changed(self, _) -> None:
        ftype = self.filter_combo.currentData()
        self.setCursor(Qt.WaitCursor)
        try:
            self.session.set_filter(ftype)
            self._refresh_image()
        finally:
            self.unsetCursor()

    def _open_crop(self) -> None:
        dlg = CropDialog(self.session, self)
        if dlg.exec() == QDialog.Accepted:
            self._refresh_image()

    def _on_text_changed(self, value: str) -> None:
        self.session.set_text(value)
        self._refresh_text()

    def _on_style_changed(self, _) -> None:
        self.session.set_text_style(font=self.font_combo.currentData(), size=self.size_slider.value())
        self._update_style_widgets()
        self._refresh_text()

    def _pick_color(self, which: str) -> None:
        current = getattr(self.session.text, which)
        col = QColorDialog.getColor(
            _qcolor(current), self, "Select Color", QColorDialog.ShowAlphaChannel
        )
        if not col.isValid():
            return
        if which == "color":
            self.session.set_text_style(color=_rgba(col))
        else:
            self.session.set_text_style(background=_rgba(col))
        self._update_style_widgets()
        self._refresh_text()

    def _save(self, fmt: ImageFormat, action: SaveAction) -> None:
        self._on_save(self.session, fmt, action)

    def set_saving(self, saving: bool) -> None:
        self.save_btn.setEnabled(not saving)
        self.save_btn.setText("Saving..." if saving else "Save...")

    def finish(self) -> None:
        """Close after a successful save."""
        self.session.close()
        super().accept()

    def reject(self) -> None:
        self.session.close()
        super().reject()
