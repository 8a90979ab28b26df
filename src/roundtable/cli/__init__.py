"""Command-line interface for Roundtable."""
