"""Command-line interface for ScaleX."""
