"""Leftovers data models."""

from leftovers.models.app import AppDescriptor
from leftovers.models.category import CATEGORIES, Category
from leftovers.models.entry import Entry, Row, Totals
from leftovers.models.removal_result import RemovalResult

__all__ = [
    "AppDescriptor",
    "CATEGORIES",
    "Category",
    "Entry",
    "RemovalResult",
    "Row",
    "Totals",
]
