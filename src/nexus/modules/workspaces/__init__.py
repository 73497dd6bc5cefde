"""Workspaces module - tenants, memberships and invitations."""
