"""Caller-side glue: settings, caching, file loading, and the CLI.

Depends on core/ and backtest/; neither depends on this package.
"""

from service.analysis import AnalysisReport, AnalysisService

__all__ = ["AnalysisReport", "AnalysisService"]
