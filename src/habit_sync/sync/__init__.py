"""
Sync subsystem.

Components:
- auth.py: in-process authentication collaborator
- remote.py: auth-gated, single-flight remote persistence
- orchestrator.py: start/sign-in reconciliation and debounced pushes
"""
