from __future__ import annotations

import argparse
import sys
from pathlib import Path

from PySide6.QtCore import QSettings
from PySide6.QtWidgets import QApplication

from diary_manager.app_settings import SettingsKeys, get_str
from diary_manager.logging_setup import SESSION_ID, install_global_exception_hooks, log
from diary_manager.settings import APP_NAME, DEFAULT_ENTRIES_DIR
from diary_manager.store.entry_store import EntryStore
from diary_manager.ui.main_window import DiaryWindow
from diary_manager.ui.qt_utils import safe_set_setting


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Personal diary with plain-text entry files")
    p.add_argument(
        "--entries-dir",
        type=Path,
        default=None,
        help=f"Folder holding entry files (default: last used, else {DEFAULT_ENTRIES_DIR})",
    )
    return p.parse_args(argv)


def resolve_entries_dir(settings: QSettings, override: Path | None) -> Path:
    if override is not None:
        path = override.expanduser()
        safe_set_setting(settings, SettingsKeys.ENTRIES_DIR, str(path))
        return path
    return Path(get_str(settings, SettingsKeys.ENTRIES_DIR, str(DEFAULT_ENTRIES_DIR))).expanduser()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    install_global_exception_hooks()

    app = QApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)
    settings = QSettings(APP_NAME, APP_NAME)

    store = EntryStore(resolve_entries_dir(settings, args.entries_dir))
    win = DiaryWindow(store=store, settings=settings)
    win.show()
    log.info("Application started, SID=%s", SESSION_ID)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
