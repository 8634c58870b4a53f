from .store_task import StoreTaskWorker

__all__ = [
    "StoreTaskWorker",
]
