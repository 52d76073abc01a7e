"""
Entry point for running the examples as a module.

Usage:
    python -m bithive_relayer stake
"""

from bithive_relayer.cli import main

if __name__ == "__main__":
    main()
