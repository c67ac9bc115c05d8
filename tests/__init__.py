"""
Shared test helpers for the dashboard chart engine.

- factories.py: compact builders for typed records and backend rows
"""
