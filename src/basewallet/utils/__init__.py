"""Utility modules for basewallet."""

from basewallet.utils.deadline import Deadline
from basewallet.utils.units import format_units, parse_units, require_positive

__all__ = ["Deadline", "format_units", "parse_units", "require_positive"]
