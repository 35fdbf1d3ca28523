"""Fixed-step driver for Model Exchange components."""

from .core import BatchRunner, IncrementalStepper, SimEngine, simulate

__all__ = ["BatchRunner", "IncrementalStepper", "SimEngine", "simulate"]
