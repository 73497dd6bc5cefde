"""Nexus: multi-tenant workspace and billing API."""

__version__ = "0.1.0"
