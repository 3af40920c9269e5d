"""History bucket arithmetic."""

from rotation_engine.history.clock import HistoryClock

__all__ = ["HistoryClock"]
