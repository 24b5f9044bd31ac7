"""Remote store bindings."""

from civicsync.store.base import Order, RemoteStore, StoreError, StoreOk, StoreResult

__all__ = ["Order", "RemoteStore", "StoreError", "StoreOk", "StoreResult"]
