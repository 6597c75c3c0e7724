"""Treeline command-line client: export machinepacks, upgrade generated projects."""

__version__ = "3.0.0"
