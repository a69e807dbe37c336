"""Simulation controller and tick scheduling."""

from .scheduler import TickScheduler
from .simulator import Simulator

__all__ = ["Simulator", "TickScheduler"]
