from .multi_tenant import MultiTenantNanoVDB, TenantCacheStats

__all__ = ["MultiTenantNanoVDB", "TenantCacheStats"]
