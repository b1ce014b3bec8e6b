"""Utility helpers shared across the gym ledger application."""
