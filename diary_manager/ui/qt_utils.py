from __future__ import annotations

import logging
from contextlib import contextmanager

from PySide6.QtCore import QSettings

from diary_manager.settings import APP_NAME

log = logging.getLogger(APP_NAME)


@contextmanager
def blocked_signals(obj):
    """Temporarily silence a widget's signals; always re-enables them."""
    if obj is None:
        yield
        return
    obj.blockSignals(True)
    try:
        yield
    finally:
        obj.blockSignals(False)


def safe_set_setting(settings: QSettings, key: str, value) -> None:
    """Best-effort QSettings write; a failing settings backend must not break the UI."""
    try:
        settings.setValue(key, value)
    except Exception:
        log.debug("QSettings write failed: key=%s", key, exc_info=True)
