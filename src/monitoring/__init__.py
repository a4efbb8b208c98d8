# src/monitoring/__init__.py

"""Console reporting and logging setup."""

from .reporter import Reporter

__all__ = ["Reporter"]
