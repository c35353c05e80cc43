"""Shift coordination service: lifecycle, claims, swaps and admission control."""

__version__ = "1.0.0"
