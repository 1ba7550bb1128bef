# src/habit_sync/__init__.py

"""Habit tracker core: state store, local/remote persistence and sync."""

__version__ = "0.1.0"
