"""
Dispatch Analyzer

Statistical analysis and reporting for dispatch runs, built on the
broker's broadcast pipe.
"""

__version__ = "0.1.0"

from .statistics import DispatchStatistics

__all__ = ['DispatchStatistics']
