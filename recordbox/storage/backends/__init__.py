"""
Storage backend factory.

Usage:
    from recordbox.storage.backends import make_backend
    backend = make_backend("json", path="./data/db.json")

Adding a new backend:
    1. Create recordbox/storage/backends/<name>.py implementing StorageBackend.
    2. Add an entry to _REGISTRY below.
    3. Set  storage.backend: <name>  in config.yaml.
    No other changes required.
"""

from .base import Snapshot, StorageBackend

_REGISTRY: dict[str, type[StorageBackend]] = {}


def _register():
    """Lazy-import backends so importing the base class stays cheap."""
    if _REGISTRY:
        return
    from .json_file import JsonFileBackend
    from .memory import MemoryBackend
    _REGISTRY["json"] = JsonFileBackend
    _REGISTRY["memory"] = MemoryBackend


def make_backend(backend_type: str, **kwargs) -> StorageBackend:
    """
    Instantiate a storage backend by name.

    Args:
        backend_type: Registry key (e.g. "json").
        **kwargs:     Passed directly to the backend constructor.

    Raises:
        ValueError: If the backend type is not registered.
    """
    _register()
    cls = _REGISTRY.get(backend_type)
    if cls is None:
        available = ", ".join(sorted(_REGISTRY.keys()))
        raise ValueError(
            f"Unknown storage backend: '{backend_type}'. "
            f"Available: {available}"
        )
    return cls(**kwargs)


def backend_from_config(cfg: dict) -> StorageBackend:
    """Build the backend named under the `storage` section of a config dict."""
    storage_cfg = dict(cfg.get("storage", {}))
    backend_type = storage_cfg.pop("backend", "json")
    if backend_type == "memory":
        storage_cfg.pop("path", None)
    return make_backend(backend_type, **storage_cfg)


__all__ = ["Snapshot", "StorageBackend", "make_backend", "backend_from_config"]
