from .memory import InMemoryStore, StoreCall

__all__ = ["InMemoryStore", "StoreCall"]
