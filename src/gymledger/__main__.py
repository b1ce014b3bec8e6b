"""
Main entry point for the gym ledger application.
"""

import sys
from gymledger.cli import main

if __name__ == "__main__":
    sys.exit(main())
