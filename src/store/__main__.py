#!/usr/bin/env python3
"""Powertools Store - Module entry point."""
import sys

from store.cli import main

if __name__ == "__main__":
    sys.exit(main())
