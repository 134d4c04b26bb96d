"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskView, TaskEvent)
- task_store.py: in-memory active/history lists + mutation helpers
- task_scheduler.py: per-task deferred archival after the grace period
"""
