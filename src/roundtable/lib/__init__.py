"""Configuration, logging and telemetry support for Roundtable."""
