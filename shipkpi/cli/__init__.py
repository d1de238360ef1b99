"""Command line host for the dashboard views (python -m shipkpi.cli)."""
