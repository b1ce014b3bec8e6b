"""Configuration package for the gym ledger application."""
