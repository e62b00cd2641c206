"""
Spend Tracker - Source Package

A household finance tracker: members record salary, expenses, investments
and other cash activities per month, and the dashboard turns those raw
lists into totals, breakdowns and advice.

DESIGN PRINCIPLES:
1. The backend owns the data, the client only derives views from it
2. Every derived figure comes from one pure function over a snapshot
3. Snapshots are replaced whole, never patched in place
4. Failed commands are reported, never silently reconciled
5. Backend is swappable (HTTP or in-memory)
"""

__version__ = "1.0.0"
__author__ = "Spend Tracker Team"
