"""
Analysis Engine Module

Builds chart-ready series from platform records:
- Cumulative profit history
- Fixed-grid daily returns
- Multi-metric cumulative performance (deposits, investments, profits)
- Portfolio distribution by plan
- Admin platform statistics
"""

__version__ = "0.1.0"
