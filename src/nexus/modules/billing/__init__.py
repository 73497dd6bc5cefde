"""Billing module - Stripe checkout and subscription reconciliation."""
