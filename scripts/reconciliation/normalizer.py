"""
Supply Name Normalization

Single entry point for putting legacy and catalog supply names into a
comparable form. Both sides of every comparison must go through
normalize_supply_name() first.

Steps, in order:
  1. Unicode NFD decomposition, combining marks dropped (accents)
  2. Uppercase
  3. ( ) : , . - replaced by a space
  4. Whitespace runs collapsed, ends trimmed
"""

import re
import unicodedata
from typing import Optional


_PUNCTUATION_RE = re.compile(r"[():,.\-]")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_accents(text: str) -> str:
    """Remove diacritical marks: 'Solución' -> 'Solucion'."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_supply_name(name: Optional[str]) -> str:
    """
    Canonicalize a raw supply name.

    Examples:
        >>> normalize_supply_name("Solución, Inyectable.")
        'SOLUCION INYECTABLE'

        >>> normalize_supply_name("circuito circular (neonatal)")
        'CIRCUITO CIRCULAR NEONATAL'
    """
    if not name:
        return ""

    result = strip_accents(name).upper()
    result = _PUNCTUATION_RE.sub(" ", result)
    result = _WHITESPACE_RE.sub(" ", result).strip()
    return result
