from __future__ import annotations

from PySide6.QtCore import Qt, QSettings, QThreadPool, Slot
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout,
    QListWidget, QListWidgetItem, QTextEdit, QLineEdit, QMessageBox,
    QSplitter, QPushButton, QLabel, QProgressBar, QSizePolicy,
)
from PySide6.QtWebEngineWidgets import QWebEngineView

from diary_manager.app_helpers import normalize_autosave_ms, normalize_theme
from diary_manager.app_settings import SettingsKeys, get_int, get_str
from diary_manager.core.models import EntryRecord, SessionMode
from diary_manager.logging_setup import log
from diary_manager.services.markdown_renderer import MarkdownRenderer
from diary_manager.session.controller import SessionController
from diary_manager.settings import AUTOSAVE_INTERVAL_MS
from diary_manager.store.entry_store import EntryStore
from diary_manager.ui.qt_utils import blocked_signals, safe_set_setting
from diary_manager.ui.styles import DARK_QSS


class DiaryWindow(QMainWindow):
    """
    Thin presentation layer: forwards user intents to SessionController and
    renders whatever its signals carry. Holds no entry state of its own.
    """

    def __init__(self, *, store: EntryStore, settings: QSettings, pool: QThreadPool | None = None):
        super().__init__()
        self.setWindowTitle("Personal Diary Manager")
        self._settings = settings
        self._theme = normalize_theme(get_str(settings, SettingsKeys.UI_THEME, "light"))
        autosave_ms = normalize_autosave_ms(
            get_int(settings, SettingsKeys.AUTOSAVE_MS, AUTOSAVE_INTERVAL_MS),
            AUTOSAVE_INTERVAL_MS,
        )

        self.renderer = MarkdownRenderer(theme=self._theme)
        self.controller = SessionController(
            store=store,
            pool=pool,
            draft_provider=self._draft,
            autosave_ms=autosave_ms,
            parent=self,
        )
        self._ui_mode: SessionMode | None = None

        # --- left: navigation ---
        self.search = QLineEdit()
        self.search.setPlaceholderText("Search entries...")
        self.listw = QListWidget()

        self.new_btn = QPushButton("New Entry")
        self.delete_btn = QPushButton("Delete Entry")
        self.theme_btn = QPushButton("Dark Mode")
        self.theme_btn.setCheckable(True)

        self.progress = QProgressBar()
        self.progress.setRange(0, 0)  # indeterminate
        self.progress.setMaximumHeight(6)
        self.progress.setTextVisible(False)
        self.progress.setVisible(False)

        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(8, 8, 8, 8)
        left_layout.addWidget(self.search)
        left_layout.addWidget(self.listw)
        left_layout.addWidget(self.new_btn)
        left_layout.addWidget(self.delete_btn)
        left_layout.addWidget(self.theme_btn)
        left_layout.addWidget(self.progress)

        # --- right: editor / preview ---
        self.title_edit = QLineEdit()
        self.title_edit.setPlaceholderText("Entry Title")
        self.editor = QTextEdit()
        self.editor.setAcceptRichText(False)
        self.preview = QWebEngineView()
        self.preview.setVisible(False)

        self.save_btn = QPushButton("Save")
        self.edit_btn = QPushButton("Edit")
        self.status = QLabel("Ready")
        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)

        bottom = QHBoxLayout()
        bottom.addWidget(self.save_btn)
        bottom.addWidget(self.edit_btn)
        bottom.addWidget(spacer)
        bottom.addWidget(self.status)

        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(8, 8, 8, 8)
        right_layout.addWidget(self.title_edit)
        right_layout.addWidget(self.editor, 1)
        right_layout.addWidget(self.preview, 1)
        right_layout.addLayout(bottom)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(left)
        self.splitter.addWidget(right)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 3)
        self.setCentralWidget(self.splitter)

        # UI -> controller
        self.search.textChanged.connect(self.controller.filter)
        self.listw.itemSelectionChanged.connect(self._on_select_entry)
        self.new_btn.clicked.connect(self._on_new_entry)
        self.delete_btn.clicked.connect(self._on_delete_entry)
        self.save_btn.clicked.connect(self._on_save_clicked)
        self.edit_btn.clicked.connect(self.controller.begin_edit)
        self.theme_btn.toggled.connect(self._on_theme_toggled)

        # controller -> UI
        self.controller.list_updated.connect(self._on_list_updated)
        self.controller.status_changed.connect(self.status.setText)
        self.controller.error_raised.connect(self._on_error)
        self.controller.mode_changed.connect(self._on_mode_changed)
        self.controller.busy_changed.connect(self._on_busy_changed)
        self.controller.entry_saved.connect(self._on_entry_saved)

        self._restore_ui_state()

        self.controller.initialize()
        self.controller.start_new()
        self.controller.start_autosave()
        log.info("Diary window ready: entries_dir=%s autosave_ms=%d", store.entries_dir, autosave_ms)

    def closeEvent(self, event):  # type: ignore[override]
        """Persist the last edit and window state before the window goes away."""
        try:
            self.controller.shutdown()
        except Exception:
            log.exception("Failed to flush entry on close")
        safe_set_setting(self._settings, SettingsKeys.UI_GEOMETRY, self.saveGeometry())
        safe_set_setting(self._settings, SettingsKeys.UI_SPLITTER, self.splitter.sizes())
        safe_set_setting(self._settings, SettingsKeys.UI_THEME, self._theme)
        super().closeEvent(event)

    # ───────────────────────── intents ─────────────────────────

    def _draft(self) -> tuple[str, str]:
        return self.title_edit.text(), self.editor.toPlainText()

    def _flush_before_switch(self) -> None:
        # unsaved drift in EDITING goes to disk before the session changes
        self.controller.flush()

    def _on_new_entry(self):
        self._flush_before_switch()
        self.controller.start_new()

    def _on_select_entry(self):
        items = self.listw.selectedItems()
        if not items:
            return
        record = items[0].data(Qt.UserRole)
        if record is None:
            return
        self._flush_before_switch()
        self.controller.select(record)

    def _on_delete_entry(self):
        self.controller.delete_current()

    def _on_save_clicked(self):
        title, content = self._draft()
        self.controller.save(title, content, is_explicit=True)

    def _on_theme_toggled(self, checked: bool):
        self._apply_theme("dark" if checked else "light")

    # ───────────────────────── controller events ─────────────────────────

    @Slot(object)
    def _on_list_updated(self, records: tuple):
        current = self.controller.current
        current_id = current.file_id if current is not None else None

        with blocked_signals(self.listw):
            self.listw.clear()
            for record in records:
                item = QListWidgetItem(record.label)
                item.setData(Qt.UserRole, record)
                self.listw.addItem(item)
                if current_id and record.file_id == current_id:
                    item.setSelected(True)
                    self.listw.setCurrentItem(item)

    @Slot(object)
    def _on_mode_changed(self, mode: SessionMode):
        prev, self._ui_mode = self._ui_mode, mode
        current = self.controller.current

        if mode is SessionMode.NEW:
            with blocked_signals(self.title_edit), blocked_signals(self.editor):
                self.title_edit.clear()
                self.editor.clear()
            with blocked_signals(self.listw):
                self.listw.clearSelection()
            self._show_editor(True)
        elif mode is SessionMode.READING and current is not None:
            self.title_edit.setText(current.title)
            self._render_preview(current)
            self._show_editor(False)
        elif mode is SessionMode.EDITING and current is not None:
            # NEW -> EDITING keeps whatever the user typed since the first save
            if prev is SessionMode.READING:
                self.title_edit.setText(current.title)
                self.editor.setPlainText(current.content)
            self._show_editor(True)

        self.edit_btn.setEnabled(mode is SessionMode.READING)
        self.save_btn.setEnabled(mode is not SessionMode.READING)
        self.delete_btn.setEnabled(current is not None and not self.controller.is_busy)

    @Slot(str)
    def _on_error(self, message: str):
        QMessageBox.critical(self, "Error", message)

    @Slot(bool)
    def _on_busy_changed(self, busy: bool):
        self.progress.setVisible(busy)
        self.delete_btn.setEnabled(not busy and self.controller.current is not None)

    @Slot(object, bool)
    def _on_entry_saved(self, record: EntryRecord, explicit: bool):
        if explicit:
            QMessageBox.information(self, "Success", "Entry saved successfully.")

    # ───────────────────────── view helpers ─────────────────────────

    def _show_editor(self, editing: bool):
        self.title_edit.setReadOnly(not editing)
        self.editor.setVisible(editing)
        self.preview.setVisible(not editing)

    def _render_preview(self, record: EntryRecord):
        stamp = record.timestamp.strftime("%Y-%m-%d %H:%M")
        self.preview.setHtml(self.renderer.render_page(record.content, title=record.title, stamp=stamp))

    def _apply_theme(self, theme: str):
        self._theme = normalize_theme(theme)
        self.setStyleSheet(DARK_QSS if self._theme == "dark" else "")
        self.renderer.theme = self._theme
        with blocked_signals(self.theme_btn):
            self.theme_btn.setChecked(self._theme == "dark")
        if self._ui_mode is SessionMode.READING and self.controller.current is not None:
            self._render_preview(self.controller.current)

    def _restore_ui_state(self):
        geo = self._settings.value(SettingsKeys.UI_GEOMETRY)
        if geo:
            self.restoreGeometry(geo)
        else:
            self.resize(950, 650)

        sizes = self._settings.value(SettingsKeys.UI_SPLITTER)
        if isinstance(sizes, (list, tuple)):
            try:
                self.splitter.setSizes([int(s) for s in sizes])
            except (TypeError, ValueError):
                log.debug("Ignoring malformed splitter sizes: %r", sizes)

        self._apply_theme(self._theme)
