"""
Tasks module - steps run before the application server starts.

- manage: wrappers around Django management commands
- startup: the ordered startup sequence and process hand-over
"""

from entrypoint.tasks import manage, startup

__all__ = ["manage", "startup"]
