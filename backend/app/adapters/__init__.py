"""Adapters for external services.

Adapters are domain-agnostic: they know nothing about notes, profiles or
quotas and never touch the database.
"""
