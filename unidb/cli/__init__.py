"""Command line interface for UniDB."""
