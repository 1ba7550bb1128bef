"""
Core subsystem.

Components:
- models.py: data structures (Task, DayStatus, AppState)
- dates.py: date keys and week grid helpers
- store.py: in-memory state store (the single source of truth for a session)
- merge.py: local/remote reconciliation
- transfer.py: export/import documents
- stats.py: per-task statistics
- ports.py: Protocols for persistence/auth collaborators
"""
