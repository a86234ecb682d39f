"""
Focus timer.

Components:
- pomodoro.py: countdown state machine, async tick loop, background runner, completion notice
"""
