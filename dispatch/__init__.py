"""Scheduling and admission-control core for walk-in queue dispatch."""

__version__ = "0.1.0"
