"""Plan catalog adapters."""

from workday.adapters.entitlements.database import DatabasePlanCatalog

__all__ = ["DatabasePlanCatalog"]
