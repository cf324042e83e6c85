"""Pickora: fair picks, real winners."""

__version__ = "1.0.0"
