"""Task manager — the scheduled entry point of the notification pipeline.

Provides ``TaskManager`` for periodic background tasks such as:
- Queue drain (claim and deliver due notification intents)

Uses ``asyncio`` tasks for scheduling. Overlapping drains across
processes are safe because each intent is claimed with a conditional
update.
"""

from __future__ import annotations

from wallet_notify.taskmanager.manager import CronJob, TaskManager

__all__ = ["CronJob", "TaskManager"]
