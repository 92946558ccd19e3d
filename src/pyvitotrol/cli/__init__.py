"""Command line tools for pyvitotrol."""
