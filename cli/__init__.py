"""Subcommand parsers and handlers for the ddb CLI."""
