"""Bulk maintenance toolkit for Watson Discovery collections."""

__version__ = "0.3.0"
