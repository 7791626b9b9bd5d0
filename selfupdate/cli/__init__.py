"""Command line interface (typer) and the hook for embedding it in a host program."""

from selfupdate.cli.embed import register_self_update

__all__ = ["register_self_update"]
