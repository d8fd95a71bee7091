"""Bee Fleet Proxy: aggregation backend for the Bee Maps fleet dashboard."""

__version__ = '1.0.0'
