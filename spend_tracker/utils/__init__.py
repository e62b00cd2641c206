"""Shared helpers."""

from spend_tracker.utils.amounts import coerce_amount, format_currency

__all__ = ["coerce_amount", "format_currency"]
