"""Core shared logic for technical indicators, signal scoring, and models.

This package contains pure business logic with no I/O dependencies
(no network, file, or database access). It is shared between the
analysis service (service/) and the backtesting system (backtest/).
"""
