"""Command-line interface for cachectl."""
