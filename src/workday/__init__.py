"""Workday - multi-tenant access control and plan entitlements."""

__version__ = "1.0.0"
