"""
Reminders bridge package.

Builds injection-safe AppleScript for reminder and list mutations, reads the
store through the GetReminders helper, and exposes both over a FastAPI app
(`reminders_bridge.main:app`).
"""

__version__ = "0.1.0"
