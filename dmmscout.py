#!/usr/bin/env python3
"""
Convenience shim to run dmmscout from a source checkout.
Usage: python dmmscout.py [--search] [--json] [--config PATH] TARGET
"""

from dmmscout.cli import main


if __name__ == "__main__":
    main()
