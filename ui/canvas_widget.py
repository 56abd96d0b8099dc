from __future__ import annotations
from typing import Callable, Optional

from PIL import Image
from PySide6.QtCore import Qt, QPointF, QRectF
from PySide6.QtGui import QBrush, QColor, QImage, QPainter, QPainterPath, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from core.config import HANDLE_DIAMETER, SWIPE_MIN_DISTANCE
from core.crop import RESIZE_HANDLES, CropState, Handle, display_crop_rect, handle_point, hit_test
from core.geometry import Point, Rect, Size, display_rect_for_image


def pil_rgba_to_qimage(img: Image.Image) -> QImage:
    img = img.convert("RGBA")
    w, h = img.size
    data = img.tobytes("raw", "RGBA")
    qimg = QImage(data, w, h, QImage.Format_RGBA8888)
    # Important: keep a copy because Python-owned bytes may be freed
    return qimg.copy()


def _qrect(r: Rect) -> QRectF:
    return QRectF(r.x, r.y, r.width, r.height)


class ImageCanvas(QWidget):
    """Draws one image scaled to fit and centered on a dark background."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._pixmap: Optional[QPixmap] = None
        self._image_size = Size(0, 0)
        self.placeholder = ""
        self.setMinimumSize(200, 150)
        self.setFocusPolicy(Qt.StrongFocus)

    def set_image(self, img: Optional[Image.Image]) -> None:
        if img is None:
            self._pixmap = None
            self._image_size = Size(0, 0)
        else:
            self._pixmap = QPixmap.fromImage(pil_rgba_to_qimage(img))
            self._image_size = Size(img.width, img.height)
        self.update()

    def container_size(self) -> Size:
        return Size(self.width(), self.height())

    def display_rect(self) -> Rect:
        return display_rect_for_image(self._image_size, self.container_size())

    def paintEvent(self, _) -> None:
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing, True)
        p.setRenderHint(QPainter.SmoothPixmapTransform, True)
        p.fillRect(self.rect(), QColor(0, 0, 0))

        if self._pixmap is None:
            if self.placeholder:
                p.setPen(QPen(QColor(160, 160, 160)))
                p.drawText(self.rect(), Qt.AlignCenter, self.placeholder)
            return

        r = self.display_rect()
        if not r.is_empty:
            p.drawPixmap(_qrect(r), self._pixmap, QRectF(self._pixmap.rect()))
        self.paint_overlay(p, r)

    def paint_overlay(self, p: QPainter, display_rect: Rect) -> None:
        pass


class ViewerCanvas(ImageCanvas):
    """Main viewer image: horizontal swipe navigates, double-click toggles full screen."""

    def __init__(
        self,
        on_swipe: Callable[[int], None],
        on_double_click: Callable[[], None],
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self._on_swipe = on_swipe
        self._on_double_click = on_double_click
        self._press: Optional[QPointF] = None
        self.placeholder = "Select a folder or image to begin."

    def mousePressEvent(self, e) -> None:
        if e.button() == Qt.LeftButton:
            self._press = e.position()

    def mouseReleaseEvent(self, e) -> None:
        if e.button() != Qt.LeftButton or self._press is None:
            return
        dx = e.position().x() - self._press.x()
        dy = e.position().y() - self._press.y()
        self._press = None
        if (dx * dx + dy * dy) ** 0.5 >= SWIPE_MIN_DISTANCE:
            # Swipe right goes back
            self._on_swipe(-1 if dx > 0 else 1)

    def mouseDoubleClickEvent(self, e) -> None:
        if e.button() == Qt.LeftButton:
            self._on_double_click()


class CropCanvas(ImageCanvas):
    """
    Crop overlay on top of the image:
      - dims everything outside the crop rect
      - left-drag inside the rect moves it
      - left-drag on one of the 8 handles resizes
    Drags report the cumulative translation since the press.
    """

    def __init__(
        self,
        get_state: Callable[[], Optional[CropState]],
        on_drag_start: Callable[[Handle], None],
        on_drag: Callable[[float, float, Rect], None],
        on_drag_end: Callable[[], None],
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setMouseTracking(True)
        self._get_state = get_state
        self._on_drag_start = on_drag_start
        self._on_drag = on_drag
        self._on_drag_end = on_drag_end
        self._press: Optional[QPointF] = None

    def paint_overlay(self, p: QPainter, display_rect: Rect) -> None:
        state = self._get_state()
        if state is None:
            return
        frame = display_crop_rect(state, display_rect)
        if frame.is_empty:
            return

        shade = QPainterPath()
        shade.addRect(QRectF(self.rect()))
        hole = QPainterPath()
        hole.addRect(_qrect(frame))
        p.fillPath(shade.subtracted(hole), QColor(0, 0, 0, 128))

        p.setPen(QPen(QColor(255, 255, 255), 1))
        p.setBrush(Qt.NoBrush)
        p.drawRect(_qrect(frame))

        p.setPen(Qt.NoPen)
        p.setBrush(QBrush(QColor(255, 255, 255)))
        radius = HANDLE_DIAMETER * 0.5
        for handle in RESIZE_HANDLES:
            hp = handle_point(handle, frame)
            p.drawEllipse(QPointF(hp.x, hp.y), radius, radius)

    def _cursor_for(self, handle: Optional[Handle]) -> Qt.CursorShape:
        if handle is None:
            return Qt.ArrowCursor
        if handle is Handle.MOVE:
            return Qt.SizeAllCursor
        if handle in (Handle.TOP_LEFT, Handle.BOTTOM_RIGHT):
            return Qt.SizeFDiagCursor
        if handle in (Handle.TOP_RIGHT, Handle.BOTTOM_LEFT):
            return Qt.SizeBDiagCursor
        if handle in (Handle.LEFT, Handle.RIGHT):
            return Qt.SizeHorCursor
        return Qt.SizeVerCursor

    def mousePressEvent(self, e) -> None:
        state = self._get_state()
        if e.button() != Qt.LeftButton or state is None:
            return
        pos = e.position()
        handle = hit_test(state, self.display_rect(), Point(pos.x(), pos.y()))
        if handle is None:
            return
        self._press = pos
        self._on_drag_start(handle)

    def mouseMoveEvent(self, e) -> None:
        pos = e.position()
        if self._press is None:
            state = self._get_state()
            if state is not None:
                self.setCursor(self._cursor_for(hit_test(state, self.display_rect(), Point(pos.x(), pos.y()))))
            return
        self._on_drag(pos.x() - self._press.x(), pos.y() - self._press.y(), self.display_rect())
        self.update()

    def mouseReleaseEvent(self, e) -> None:
        if e.button() == Qt.LeftButton and self._press is not None:
            self._press = None
            self._on_drag_end()
            self.update()


class EditCanvas(ImageCanvas):
    """Filtered preview with the draggable text badge on top."""

    def __init__(
        self,
        on_resized: Callable[[Size], None],
        on_text_drag: Callable[[Point], None],
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self._on_resized = on_resized
        self._on_text_drag = on_text_drag
        self._badge: Optional[QPixmap] = None
        self._anchor: Optional[Point] = None
        self._dragging = False

    def set_text_badge(self, badge: Optional[Image.Image], anchor: Optional[Point]) -> None:
        self._badge = QPixmap.fromImage(pil_rgba_to_qimage(badge)) if badge is not None else None
        self._anchor = anchor
        self.update()

    def _badge_rect(self) -> Optional[QRectF]:
        if self._badge is None or self._anchor is None:
            return None
        w, h = self._badge.width(), self._badge.height()
        return QRectF(self._anchor.x - w * 0.5, self._anchor.y - h * 0.5, w, h)

    def paint_overlay(self, p: QPainter, display_rect: Rect) -> None:
        r = self._badge_rect()
        if r is not None:
            p.drawPixmap(r.topLeft(), self._badge)

    def resizeEvent(self, e) -> None:
        super().resizeEvent(e)
        self._on_resized(self.container_size())

    def mousePressEvent(self, e) -> None:
        r = self._badge_rect()
        if e.button() == Qt.LeftButton and r is not None and r.contains(e.position()):
            self._dragging = True
            self.setCursor(Qt.ClosedHandCursor)

    def mouseMoveEvent(self, e) -> None:
        if self._dragging:
            pos = e.position()
            self._on_text_drag(Point(pos.x(), pos.y()))

    def mouseReleaseEvent(self, e) -> None:
        if e.button() == Qt.LeftButton and self._dragging:
            self._dragging = False
            self.unsetCursor()
