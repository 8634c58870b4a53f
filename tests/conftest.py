import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from PySide6.QtCore import QCoreApplication


class InlinePool:
    """Runs each worker immediately on the calling thread."""

    def __init__(self):
        self.started = 0

    def start(self, worker):
        self.started += 1
        worker.run()

    def waitForDone(self, msecs=-1):
        return True


class DeferredPool:
    """Holds workers until the test runs them, to model in-flight storage calls."""

    def __init__(self):
        self.pending = []

    def start(self, worker):
        self.pending.append(worker)

    def run_next(self, index=0):
        self.pending.pop(index).run()

    def run_all(self):
        while self.pending:
            self.run_next()

    def waitForDone(self, msecs=-1):
        self.run_all()
        return True


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def inline_pool():
    return InlinePool()


@pytest.fixture
def deferred_pool():
    return DeferredPool()
