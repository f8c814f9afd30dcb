"""HTTP routers for reminders, lists and permission checks."""
