"""Tenant-scoped readers for the member, purchase and engagement tables."""
