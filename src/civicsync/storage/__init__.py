"""Local storage package."""

from civicsync.storage.local_queue import FileLocalQueue, LocalQueue, MemoryLocalQueue

__all__ = ["FileLocalQueue", "LocalQueue", "MemoryLocalQueue"]
