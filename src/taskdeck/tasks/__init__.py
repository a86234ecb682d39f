"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, Priority, TaskPatch, AppPreferences)
- task_store.py: in-memory store persisted to local storage + preferences record
- task_query.py: filters and day/week/completed buckets with progress
- analytics.py: streaks, productive day, averages, categories, achievements, insights
"""
