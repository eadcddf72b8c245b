"""
Multi-Tenant SaaS Backend

Tenants, users and projects behind JWT authentication, role-based
authorization and per-tenant query scoping.
"""

__version__ = "1.0.0"
