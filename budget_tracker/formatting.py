"""Formatting utilities for currency and text display."""

from __future__ import annotations

from typing import Optional, Union

from .config import CURRENCY_SYMBOL


def format_currency(amount: Union[float, int], include_sign: bool = True, symbol: Optional[str] = None) -> str:
    """Format a currency amount with exactly two decimals.

    Args:
        amount: The amount to format
        include_sign: Whether to prefix the currency symbol
        symbol: Override for the configured currency symbol

    Returns:
        Formatted currency string (e.g., "₦1234.56" or "1234.56")

    Example:
        >>> format_currency(1234.5, symbol='₦')
        '₦1234.50'
        >>> format_currency(1234.5, include_sign=False)
        '1234.50'
    """
    formatted = f"{float(amount):.2f}"
    if not include_sign:
        return formatted
    return f"{CURRENCY_SYMBOL if symbol is None else symbol}{formatted}"


def format_amount(amount: Union[float, int]) -> str:
    """Two-decimal string without a symbol, as used in CSV rows and email parameters."""
    return format_currency(amount, include_sign=False)


def escape_for_markdown(text: str) -> str:
    """Escape dollar signs so Streamlit markdown does not read them as LaTeX delimiters.

    Example:
        >>> escape_for_markdown('$12.00')
        '\\\\$12.00'
    """
    return text.replace("$", "\\$")
