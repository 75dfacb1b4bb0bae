"""
Ownership-based authorization and data isolation for a multi-tenant
property-management backend.
"""
