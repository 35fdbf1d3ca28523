"""Metric consumers of the simulation event trace."""

from .base import IMetric
from .core import RunMetrics

__all__ = ["IMetric", "RunMetrics"]
