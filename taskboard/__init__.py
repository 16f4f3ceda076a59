"""Taskboard API: projects, tasks, notifications and webhook delivery."""

__version__ = "0.1.0"
