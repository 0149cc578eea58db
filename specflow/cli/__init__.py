"""Specflow command-line interface."""
