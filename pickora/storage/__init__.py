from .kv_client import KVClient, KVError
from .result_store import MemoryBackend, ResultStore

__all__ = ["KVClient", "KVError", "MemoryBackend", "ResultStore"]
