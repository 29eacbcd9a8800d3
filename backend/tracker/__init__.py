"""Productivity Tracker: expenses, habits, time entries and todos behind one range query engine.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
