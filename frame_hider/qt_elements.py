"""Element directory for Qt hosts.

Frames are looked up by ``objectName()`` among the application's live
widgets. Top-level windows fade through ``windowOpacity``; child widgets get
a :class:`QGraphicsOpacityEffect`. Click-through is mapped to
``WA_TransparentForMouseEvents``.

Widgets may only be touched from the GUI thread, so the poll timer used with
this directory is a :class:`GuiThreadTimer`, which runs its callback there.
"""
from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, Qt, QTimer, pyqtSignal, pyqtSlot
from PyQt6.QtWidgets import QApplication, QGraphicsOpacityEffect, QWidget


def _clamp_opacity(value: float) -> float:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 1.0
    return max(0.0, min(numeric, 1.0))


class QtElement:
    """Alpha/mouse handle around a single widget.

    Equality follows the wrapped widget so repeated lookups of the same widget
    map to the same saved state. Calls on a widget whose C++ object has been
    deleted raise ``RuntimeError``.
    """

    def __init__(self, widget: QWidget) -> None:
        self._widget = widget

    @property
    def widget(self) -> QWidget:
        return self._widget

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QtElement):
            return NotImplemented
        return self._widget is other._widget

    def __hash__(self) -> int:
        return hash(id(self._widget))

    def __repr__(self) -> str:
        return f"QtElement({self._widget.objectName()!r})"

    def get_alpha(self) -> float:
        widget = self._widget
        if widget.isWindow():
            return float(widget.windowOpacity())
        effect = widget.graphicsEffect()
        if isinstance(effect, QGraphicsOpacityEffect):
            return float(effect.opacity())
        return 1.0

    def set_alpha(self, value: float) -> None:
        opacity = _clamp_opacity(value)
        widget = self._widget
        if widget.isWindow():
            widget.setWindowOpacity(opacity)
            return
        effect = widget.graphicsEffect()
        if not isinstance(effect, QGraphicsOpacityEffect):
            effect = QGraphicsOpacityEffect(widget)
            widget.setGraphicsEffect(effect)
        effect.setOpacity(opacity)

    def is_mouse_enabled(self) -> bool:
        return not self._widget.testAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)

    def enable_mouse(self, enabled: bool) -> None:
        self._widget.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, not enabled)


class QtWidgetDirectory:
    """Resolve frame names against the running :class:`QApplication`."""

    def resolve(self, name: str) -> Optional[QtElement]:
        if not name or QApplication.instance() is None:
            return None
        for widget in QApplication.allWidgets():
            try:
                if widget.objectName() == name:
                    return QtElement(widget)
            except RuntimeError:
                continue
        return None


def qt_application_running() -> bool:
    return QApplication.instance() is not None


class _GuiThreadDispatcher(QObject):
    """Queues callables onto the thread that owns the QApplication."""

    _invoke = pyqtSignal(object)

    def __init__(self, app: QApplication) -> None:
        super().__init__()
        self.moveToThread(app.thread())
        self._invoke.connect(self._call, Qt.ConnectionType.QueuedConnection)

    def post(self, fn: Callable[[], None]) -> None:
        self._invoke.emit(fn)

    @pyqtSlot(object)
    def _call(self, fn: Callable[[], None]) -> None:
        fn()


class GuiThreadTimer:
    """One-shot timer with the ``threading.Timer`` surface, fired on the GUI thread.

    ``start`` and ``cancel`` may be called from any thread; the underlying
    :class:`QTimer` is only created and stopped on the GUI thread.
    """

    def __init__(self, interval: float, function: Callable[[], None], dispatcher: _GuiThreadDispatcher) -> None:
        self._interval_ms = max(0, int(round(float(interval) * 1000)))
        self._function = function
        self._dispatcher = dispatcher
        self._lock = threading.Lock()
        self._cancelled = False
        self._armed = False
        self._timer: Optional[QTimer] = None
        self.daemon = True

    def start(self) -> None:
        self._dispatcher.post(self._arm)

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
        self._dispatcher.post(self._release)

    def _arm(self) -> None:
        with self._lock:
            if self._cancelled or self._armed:
                return
            self._armed = True
        # Owned by the dispatcher; released through deleteLater.
        timer = QTimer(self._dispatcher)
        timer.setSingleShot(True)
        timer.timeout.connect(self._fire)
        self._timer = timer
        timer.start(self._interval_ms)

    def _release(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    def _fire(self) -> None:
        self._release()
        with self._lock:
            if self._cancelled:
                return
        self._function()


def gui_timer_factory() -> Callable[[float, Callable[[], None]], Any]:
    """Timer factory for :class:`PeriodicTask` bound to the running QApplication."""

    app = QApplication.instance()
    if app is None:
        raise RuntimeError("QApplication is not running")
    dispatcher = _GuiThreadDispatcher(app)

    def _factory(interval: float, function: Callable[[], None]) -> GuiThreadTimer:
        return GuiThreadTimer(interval, function, dispatcher)

    return _factory
