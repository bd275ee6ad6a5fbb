"""Command line interface for the handbook layer."""
