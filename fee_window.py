#!/usr/bin/env python3
"""
Convenience wrapper for running feewindow from a checkout.
Prefer the installed entrypoint: feewindow
"""

from feewindow.cli import main

if __name__ == "__main__":
    main()
