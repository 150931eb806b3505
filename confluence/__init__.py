"""
Confluence Trader

Multi-timeframe indicator confluence signals with risk-bounded trade sizing.
"""

__version__ = "0.1.0"
