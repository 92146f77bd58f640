"""
wiregraph entry point.

Usage:
    python -m wiregraph
"""

import sys


def main() -> int:
    """Main entry point for wiregraph."""
    from wiregraph.app import run_app
    return run_app(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
