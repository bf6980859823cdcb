# gptcoder/services/async_utils.py
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer
from loguru import logger


class QtTimerHandle:
    """Cancellable handle for a single-shot QTimer."""

    def __init__(self, timer: QTimer):
        self._timer = timer

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def cancel(self) -> None:
        self._timer.stop()
        self._timer.deleteLater()


class QtTimerScheduler:
    """
    Schedules delayed callbacks on the Qt event loop with single-shot QTimers.
    Callbacks run on the thread owning the event loop, normally the GUI thread.
    """

    def __init__(self, parent: Optional[QObject] = None):
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(delay_ms)

        def _fire():
            try:
                callback()
            except Exception:
                # Exceptions must not propagate into the Qt event loop
                logger.exception("Error in scheduled callback.")
            finally:
                timer.deleteLater()

        timer.timeout.connect(_fire)
        timer.start()
        logger.trace(f"Scheduled callback in {delay_ms} ms.")
        return QtTimerHandle(timer)
