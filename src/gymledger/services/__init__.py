"""
Services package for the gym ledger application.
Contains the persistence facade, derivation functions and workflows.
"""
