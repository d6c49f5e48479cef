"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskCategory, TaskPriority, TaskUpdate)
- errors.py: exceptions raised by the store
- task_store.py: JSON-file-backed storage + query/update helpers
"""
