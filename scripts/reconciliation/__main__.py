"""
Entry point for running the reconciliation module as a script.

Usage:
    python -m scripts.reconciliation run --dry-run
    python -m scripts.reconciliation analyze --limit 50
"""

from .cli import main

if __name__ == '__main__':
    main()
