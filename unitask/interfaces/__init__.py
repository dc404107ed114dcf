"""Interface layer for unitask: the Typer CLI."""
