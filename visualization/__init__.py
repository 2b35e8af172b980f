"""Visualization Package - Interactive plotly rendering of benchmark results"""

from .interactive import InteractivePlotter

__all__ = ['InteractivePlotter']
