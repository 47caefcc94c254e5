"""Cluster API infrastructure provider for STACKIT."""

__version__ = "0.1.0"
