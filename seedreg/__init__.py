"""Seed variety registry: stewarded catalog of heirloom varieties."""

__version__ = "0.1.0"
