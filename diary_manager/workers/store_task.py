from __future__ import annotations

from typing import Any, Callable

from PySide6.QtCore import QObject, QRunnable, Signal


class StoreTaskSignals(QObject):
    finished = Signal(int, object)   # req_id, result
    failed = Signal(int, str)        # req_id, error


class StoreTaskWorker(QRunnable):
    """
    Runs one EntryStore call off the UI thread.

    The worker never touches session state: it only reports the outcome.
    Connect `signals` to slots of a QObject living on the UI thread and Qt
    delivers them there as queued calls.
    """

    def __init__(self, *, req_id: int, fn: Callable[..., Any], args: tuple = ()):
        super().__init__()
        self.req_id = req_id
        self.fn = fn
        self.args = args
        self.signals = StoreTaskSignals()

    def run(self) -> None:
        try:
            result = self.fn(*self.args)
        except Exception as exc:
            self.signals.failed.emit(self.req_id, str(exc) or exc.__class__.__name__)
            return
        self.signals.finished.emit(self.req_id, result)
