from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from PySide6.QtCore import QCoreApplication, QDeadlineTimer, QObject, QThreadPool, QTimer, Signal, Slot

from diary_manager.core.models import EntryRecord, SessionMode
from diary_manager.settings import APP_NAME, AUTOSAVE_INTERVAL_MS
from diary_manager.store.entry_store import EntryStore
from diary_manager.workers.store_task import StoreTaskWorker

log = logging.getLogger(APP_NAME)

DraftProvider = Callable[[], tuple[str, str]]


@dataclass
class _Task:
    kind: str                 # "init" | "list" | "save" | "delete"
    token: int                # session token at dispatch time
    worker: StoreTaskWorker
    record: EntryRecord | None = None
    title: str = ""
    content: str = ""
    explicit: bool = False


@dataclass
class _Carry:
    """A draft flush() holds until the running save lands."""
    token: int
    title: str
    content: str
    record: EntryRecord | None = None   # None until that session's running save lands


class SessionController(QObject):
    """
    Editing-session state machine: NEW -> EDITING, READING -> EDITING, any -> NEW/READING.

    All EntryStore calls run in the thread pool. Their results come back as
    queued signals and are applied here, on the thread that owns this object.
    At most one save/delete runs at a time. Autosave ticks that arrive while
    one is outstanding are dropped and explicit saves are queued; flush()
    holds the draft and writes it once the running save lands.
    """

    list_updated = Signal(object)        # tuple[EntryRecord, ...]
    status_changed = Signal(str)
    error_raised = Signal(str)
    mode_changed = Signal(object)        # SessionMode
    busy_changed = Signal(bool)
    entry_saved = Signal(object, bool)   # record, explicit

    def __init__(
        self,
        *,
        store: EntryStore,
        pool: Optional[QThreadPool] = None,
        draft_provider: Optional[DraftProvider] = None,
        autosave_ms: int = AUTOSAVE_INTERVAL_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._pool = pool if pool is not None else QThreadPool.globalInstance()
        self._draft_provider = draft_provider

        self._mode = SessionMode.NEW
        self._current: EntryRecord | None = None
        self._last_saved_title = ""
        self._last_saved_content = ""
        # Changes every time we leave a session; late completions compare against it.
        self._session_token = 0

        self._req_id = 0
        self._list_req_id = 0
        self._query = ""
        self._tasks: dict[int, _Task] = {}
        self._busy = False
        self._mutation: _Task | None = None
        self._queued_save: tuple[str, str] | None = None
        self._carries: list[_Carry] = []

        self._autosave = QTimer(self)
        self._autosave.setInterval(int(autosave_ms))
        self._autosave.timeout.connect(self.tick)

    # ───────────────────────── state ─────────────────────────

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def current(self) -> EntryRecord | None:
        return self._current

    @property
    def baseline(self) -> tuple[str, str]:
        return self._last_saved_title, self._last_saved_content

    @property
    def is_busy(self) -> bool:
        return self._busy

    # ───────────────────────── lifecycle ─────────────────────────

    def initialize(self) -> None:
        """Create the storage directory in the background, then load the list."""
        self._dispatch("init", self._store.initialize)

    def start_autosave(self, interval_ms: int | None = None) -> None:
        if interval_ms is not None:
            self._autosave.setInterval(int(interval_ms))
        self._autosave.start()

    def stop_autosave(self) -> None:
        if self._autosave.isActive():
            self._autosave.stop()

    def shutdown(self, timeout_ms: int = 5000) -> None:
        """Last-chance autosave before exit; blocks until pending saves land."""
        self.stop_autosave()
        self.flush()

        deadline = QDeadlineTimer(timeout_ms)
        while self._mutation is not None or self._carries:
            if deadline.hasExpired() or not self._pool.waitForDone(max(deadline.remainingTime(), 0)):
                log.warning("Storage tasks still running at shutdown (timeout_ms=%d)", timeout_ms)
                return
            # completions are queued to this thread and may dispatch a carried draft
            QCoreApplication.sendPostedEvents(self)

    # ───────────────────────── transitions ─────────────────────────

    def start_new(self) -> None:
        self._leave_session()
        self._current = None
        self._last_saved_title = ""
        self._last_saved_content = ""
        self._set_mode(SessionMode.NEW)
        self.status_changed.emit("New Entry")

    def select(self, record: EntryRecord) -> None:
        self._leave_session()
        self._current = record
        self._last_saved_title = record.title
        self._last_saved_content = record.content
        self._set_mode(SessionMode.READING)
        self.status_changed.emit(f"Reading: {record.title}")

    def begin_edit(self) -> bool:
        if self._mode is not SessionMode.READING or self._current is None:
            return False
        self._set_mode(SessionMode.EDITING)
        self.status_changed.emit(f"Editing: {self._current.title}")
        return True

    def save(self, title: str, content: str, is_explicit: bool = True) -> bool:
        """
        Persist the draft. Returns True when a save was started or queued.

        NEW creates a fresh record; otherwise the current record is replaced
        by one with the same timestamp and file_id (delete-then-write).
        """
        if self._mode is SessionMode.READING:
            self.status_changed.emit("Read-only: press Edit to change this entry")
            return False

        if not title.strip():
            if is_explicit:
                self.error_raised.emit("Title cannot be empty.")
            return False

        if self._mutation is not None:
            if not is_explicit:
                log.debug("Autosave dropped: %s still in flight", self._mutation.kind)
                return False
            if self._mutation.kind == "delete" and self._mutation.token == self._session_token:
                self.status_changed.emit("Entry is being deleted")
                return False
            self._queued_save = (title, content)
            self.status_changed.emit("Save queued...")
            return True

        if self._current is None:
            record = EntryRecord(title=title, content=content, timestamp=datetime.now())
            fn, args = self._store.save, (record,)
        else:
            record = self._current.replaced_with(title=title, content=content)
            fn, args = self._store.update, (self._current, record)

        if not is_explicit:
            self.status_changed.emit("Auto-saving...")
        log.info("Saving entry: title=%r explicit=%s update=%s", title, is_explicit, self._current is not None)
        self._dispatch(
            "save", fn, args,
            record=record, title=title, content=content, explicit=is_explicit,
        )
        return True

    def delete_current(self) -> bool:
        if self._current is None:
            self.status_changed.emit("No entry selected")
            return False
        if self._mutation is not None:
            self.status_changed.emit("Please wait: save in progress")
            return False

        log.info("Deleting entry: %s", self._current.file_id or self._current.title)
        self._dispatch("delete", self._store.delete, (self._current,), record=self._current)
        return True

    def tick(self) -> bool:
        """Periodic autosave: saves only in EDITING and only when the draft drifted."""
        if self._mutation is not None:
            log.debug("Autosave tick skipped: %s in flight", self._mutation.kind)
            return False
        drift = self._drift()
        if drift is None:
            return False
        return self.save(*drift, is_explicit=False)

    def flush(self) -> bool:
        """
        Autosave before the session ends (switching entries, closing the window).

        Unlike tick(), drift is never dropped: if a save is running, the draft
        is held and written once that save lands. Returns True when a save was
        started or held.
        """
        drift = self._drift()
        if drift is None:
            return False
        if self._mutation is None:
            return self.save(*drift, is_explicit=False)

        running = self._mutation
        if running.token == self._session_token:
            if running.kind == "delete":
                return False
            if (running.title, running.content) == drift:
                return False
            # the held draft is newer than any save queued in this session
            self._queued_save = None
            record = None
        else:
            record = self._current

        self._carries = [c for c in self._carries if c.token != self._session_token]
        self._carries.append(_Carry(self._session_token, *drift, record=record))
        log.info("Holding draft until the running %s lands: title=%r", running.kind, drift[0])
        return True

    # ───────────────────────── list ─────────────────────────

    def refresh_list(self) -> None:
        if self._query.strip():
            self._dispatch("list", self._store.search, (self._query,))
        else:
            self._dispatch("list", self._store.list_all)

    def filter(self, query: str) -> None:
        self._query = query or ""
        self.refresh_list()

    # ───────────────────────── internal ─────────────────────────

    def _leave_session(self) -> None:
        self._session_token += 1
        self._queued_save = None

    def _drift(self) -> tuple[str, str] | None:
        if self._mode is not SessionMode.EDITING or self._draft_provider is None:
            return None
        title, content = self._draft_provider()
        if (title, content) == self.baseline or not title.strip():
            return None
        return title, content

    def _set_mode(self, mode: SessionMode) -> None:
        self._mode = mode
        self.mode_changed.emit(mode)

    def _set_busy(self, busy: bool) -> None:
        if busy != self._busy:
            self._busy = busy
            self.busy_changed.emit(busy)

    def _dispatch(
        self, kind: str, fn: Callable[..., Any], args: tuple = (), *, token: int | None = None, **ctx
    ) -> int:
        self._req_id += 1
        req_id = self._req_id

        worker = StoreTaskWorker(req_id=req_id, fn=fn, args=args)
        worker.signals.finished.connect(self._on_task_finished)
        worker.signals.failed.connect(self._on_task_failed)

        if token is None:
            token = self._session_token
        task = _Task(kind=kind, token=token, worker=worker, **ctx)
        self._tasks[req_id] = task
        if kind == "list":
            self._list_req_id = req_id
        elif kind in ("save", "delete"):
            self._mutation = task
        self._set_busy(True)

        # An inline pool may complete the task before start() returns.
        self._pool.start(worker)
        return req_id

    def _take(self, req_id: int) -> _Task | None:
        task = self._tasks.pop(req_id, None)
        if task is not None and task is self._mutation:
            self._mutation = None
        return task

    @Slot(int, object)
    def _on_task_finished(self, req_id: int, result: object) -> None:
        task = self._take(req_id)
        if task is None:
            return
        try:
            if task.kind == "list":
                self._apply_list(req_id, result)
            elif task.kind == "save":
                self._apply_saved(task)
            elif task.kind == "delete":
                self._apply_deleted(task)
            elif task.kind == "init":
                self.refresh_list()
        finally:
            self._set_busy(bool(self._tasks))

    @Slot(int, str)
    def _on_task_failed(self, req_id: int, err: str) -> None:
        task = self._take(req_id)
        if task is None:
            return
        try:
            if task.kind == "list":
                log.warning("Listing entries failed: %s", err)
                if req_id == self._list_req_id:
                    self.status_changed.emit("Failed to load entries")
            elif task.kind == "save":
                self._apply_save_failed(task, err)
            elif task.kind == "delete":
                log.error("Delete failed: %s", err)
                self.error_raised.emit(f"Failed to delete entry: {err}")
                self.refresh_list()
                self._run_pending()
            elif task.kind == "init":
                log.error("Storage init failed: %s", err)
                self.error_raised.emit(err)
                self.refresh_list()
        finally:
            self._set_busy(bool(self._tasks))

    def _apply_list(self, req_id: int, result: object) -> None:
        # Only the newest request reflects the current query.
        if req_id != self._list_req_id:
            log.debug("Dropping stale list result req_id=%d (latest=%d)", req_id, self._list_req_id)
            return
        self.list_updated.emit(tuple(result))

    def _apply_saved(self, task: _Task) -> None:
        record = task.record
        self._resolve_carries(task)
        self.refresh_list()

        if task.token != self._session_token:
            log.info("Save finished after the session moved on: %s", record.file_id)
        else:
            self._current = record
            self._last_saved_title = task.title
            self._last_saved_content = task.content
            if self._mode is SessionMode.NEW:
                self._set_mode(SessionMode.EDITING)

            if task.explicit:
                self.status_changed.emit(f"Saved: {task.title}")
            else:
                self.status_changed.emit(f"Auto-saved at {datetime.now():%H:%M:%S}")
            self.entry_saved.emit(record, task.explicit)
        self._run_pending()

    def _apply_save_failed(self, task: _Task, err: str) -> None:
        # update() may have removed the old file before failing; show what is on disk
        self._resolve_carries(task)
        self.refresh_list()
        if task.explicit:
            log.error("Save failed: title=%r err=%s", task.title, err)
            self.error_raised.emit(f"Failed to save entry: {err}")
        else:
            log.warning("Autosave failed: title=%r err=%s", task.title, err)
            self.status_changed.emit(f"Auto-save failed: {err}")
        self._run_pending()

    def _apply_deleted(self, task: _Task) -> None:
        if task.token == self._session_token:
            self.start_new()
        self.refresh_list()
        self.status_changed.emit("Entry deleted")
        self._run_pending()

    def _resolve_carries(self, task: _Task) -> None:
        # a failed save's record is still the right target: update() recreates it
        for carry in self._carries:
            if carry.token == task.token and carry.record is None:
                carry.record = task.record

    def _run_pending(self) -> None:
        """Start the next held mutation once nothing is in flight: carried drafts first."""
        if self._mutation is not None:
            return
        while self._carries:
            carry = self._carries.pop(0)
            if carry.record is None:
                log.warning("Dropping held draft with no entry to write to: title=%r", carry.title)
                continue
            record = carry.record.replaced_with(title=carry.title, content=carry.content)
            log.info("Saving held draft: title=%r", carry.title)
            self._dispatch(
                "save", self._store.update, (carry.record, record),
                token=carry.token, record=record,
                title=carry.title, content=carry.content, explicit=False,
            )
            return
        self._run_queued_save()

    def _run_queued_save(self) -> None:
        # _leave_session() clears the queue, so whatever is here belongs to this session
        if self._queued_save is None:
            return
        title, content = self._queued_save
        self._queued_save = None
        self.save(title, content, is_explicit=True)
