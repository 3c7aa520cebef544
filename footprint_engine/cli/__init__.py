"""Footprint Engine command-line interface."""
