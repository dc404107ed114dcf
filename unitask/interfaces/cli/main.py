"""Entry point for the unitask CLI.

Usage:
    python -m unitask.interfaces.cli.main

Or via installed entry point:
    unitask <command>
"""

from unitask.interfaces.cli import app


def main() -> None:
    """Run the unitask CLI application."""
    app()


if __name__ == "__main__":
    main()
