"""Treeline command-line interface."""
