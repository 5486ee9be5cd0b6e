"""
Task subsystem.

Components:
- task_models.py: data structures (Task, MutationKind, MutationOutcome, ...)
- task_gateway.py: HTTP client for the remote todo service
- task_store.py: in-memory ordered list + observers
- task_controller.py: optimistic create/toggle/edit/delete with rollback
- reorder.py: local-only drag/keyboard reordering
- edit_session.py: per-task inline edit drafts
"""
