"""
go2ctl.sim - Simulated robots for running routes without hardware
"""

from .mock import MockGo2

__all__ = ["MockGo2"]
