"""
Budget App - Core Package

State, sync and reporting core of a personal budgeting application.
Users record incomes, expenses, savings goals and investments; the views
read aggregated figures computed from one immutable AppState snapshot.

DESIGN PRINCIPLES:
1. One snapshot per user session, replaced on every change
2. Aggregates are computed on demand, never stored
3. Remote sync is debounced and last-write-wins
4. Storage is swappable (in-memory, Google Sheets, local file)
5. Remote failures never take the app down
"""

__version__ = "1.0.0"
__author__ = "Budget App Team"
