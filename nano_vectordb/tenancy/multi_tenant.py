"""
Multi-tenant wrapper around the similarity engine.

Each tenant owns an independent NanoVectorDB whose snapshot lives at
``storage_dir/<tenant_id>``. Only a bounded number of engines are kept in
memory; when the bound is exceeded the least recently used handle is dropped.
Dropping a handle never touches its snapshot file, so an evicted tenant stays
resolvable via storage and can be reopened with ``load_tenant``.
"""

import uuid
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from nano_vectordb.engine.interfaces import VectorStoreIOError
from nano_vectordb.engine.similarity_engine import NanoVectorDB
from nano_vectordb.monitoring.structured_logger import get_logger


@dataclass
class TenantCacheStats:
    """Tenant cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class MultiTenantNanoVDB:
    """
    Bounded LRU cache of per-tenant vector stores.

    The cache is not internally synchronized; callers sharing it between
    threads must serialize access themselves.
    """

    def __init__(
        self,
        embedding_dim: int,
        storage_dir: Union[str, Path] = "./nano_multi_tenant_storage",
        max_capacity: int = 1000,
        **engine_options: Any,
    ):
        """
        Initialize the tenant cache.

        Args:
            embedding_dim: Dimension shared by every tenant store
            storage_dir: Directory holding one snapshot file per tenant
            max_capacity: Maximum number of tenant stores kept in memory
            **engine_options: Extra keyword arguments for each NanoVectorDB
        """
        if max_capacity < 1:
            raise ValueError(f"max_capacity must be at least 1, got {max_capacity}")

        self.embedding_dim = embedding_dim
        self.storage_dir = Path(storage_dir)
        self.max_capacity = max_capacity
        self.engine_options = engine_options
        self.stats = TenantCacheStats()
        self.logger = get_logger(__name__, component="tenant_cache")

        # Oldest (least recently used) tenant first
        self._tenants: "OrderedDict[str, NanoVectorDB]" = OrderedDict()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MultiTenantNanoVDB":
        """
        Build a tenant cache from a configuration dictionary.

        Args:
            config: Dictionary as returned by ``ConfigManager.get_tenant_config``
        """
        options = dict(config)
        return cls(
            options.pop("embedding_dim"),
            storage_dir=options.pop("storage_dir", "./nano_multi_tenant_storage"),
            max_capacity=options.pop("max_capacity", 1000),
            **options,
        )

    def tenant_path(self, tenant_id: str) -> Path:
        """Path of the snapshot file backing ``tenant_id``."""
        return self.storage_dir / tenant_id

    def _open_engine(self, tenant_id: str) -> NanoVectorDB:
        return NanoVectorDB(self.embedding_dim, self.tenant_path(tenant_id), **self.engine_options)

    def _register(self, tenant_id: str, engine: NanoVectorDB):
        """Insert a handle as most recently used and evict past capacity."""
        self._tenants[tenant_id] = engine
        self._tenants.move_to_end(tenant_id)

        while len(self._tenants) > self.max_capacity:
            evicted_id, _ = self._tenants.popitem(last=False)
            self.stats.evictions += 1
            self.logger.info("Evicted tenant handle", tenant_id=evicted_id)

    def create_tenant(self) -> str:
        """
        Create a new tenant with a fresh identifier.

        Returns:
            The new tenant ID
        """
        tenant_id = uuid.uuid4().hex
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VectorStoreIOError(f"Cannot create tenant directory {self.storage_dir}: {e}") from e

        self._register(tenant_id, self._open_engine(tenant_id))
        self.logger.info("Created tenant", tenant_id=tenant_id, live_tenants=len(self._tenants))
        return tenant_id

    def get_tenant(self, tenant_id: str) -> Optional[NanoVectorDB]:
        """
        Get an in-memory tenant store and mark it most recently used.

        Evicted tenants are not reloaded here; use ``load_tenant``.

        Returns:
            The tenant's store, or None if it is not in memory
        """
        engine = self._tenants.get(tenant_id)
        if engine is None:
            self.stats.misses += 1
            return None

        self._tenants.move_to_end(tenant_id)
        self.stats.hits += 1
        return engine

    def load_tenant(self, tenant_id: str) -> NanoVectorDB:
        """
        Reopen a tenant from its snapshot file, e.g. after eviction.

        If the tenant is already in memory the live handle is returned.

        Raises:
            KeyError: If the tenant has no snapshot file
        """
        engine = self._tenants.get(tenant_id)
        if engine is not None:
            self._tenants.move_to_end(tenant_id)
            return engine

        if not self.tenant_path(tenant_id).exists():
            raise KeyError(f"Unknown tenant: {tenant_id}")

        engine = self._open_engine(tenant_id)
        self._register(tenant_id, engine)
        self.logger.info("Loaded tenant from storage", tenant_id=tenant_id)
        return engine

    def contain_tenant(self, tenant_id: str) -> bool:
        """Check whether a tenant is in memory or persisted in storage."""
        return tenant_id in self._tenants or self.tenant_path(tenant_id).exists()

    def delete_tenant(self, tenant_id: str) -> None:
        """Drop a tenant's handle and remove its snapshot file."""
        self._tenants.pop(tenant_id, None)
        path = self.tenant_path(tenant_id)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise VectorStoreIOError(f"Failed to delete tenant file {path}: {e}") from e
        self.logger.info("Deleted tenant", tenant_id=tenant_id)

    def save(self) -> None:
        """Persist every in-memory tenant store."""
        for engine in self._tenants.values():
            engine.save()

    def __len__(self) -> int:
        return len(self._tenants)

    def __contains__(self, tenant_id: str) -> bool:
        return tenant_id in self._tenants
