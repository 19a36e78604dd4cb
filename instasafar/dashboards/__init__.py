"""Dashboard statistics computed from booking rows."""

from instasafar.dashboards.stats import (
    CustomerStats,
    ProviderStats,
    customer_stats,
    provider_stats,
    stats_for_role,
)

__all__ = [
    "CustomerStats",
    "ProviderStats",
    "customer_stats",
    "provider_stats",
    "stats_for_role",
]
