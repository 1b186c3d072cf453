"""Live notification fan-out to connected clients.

The hub is process-wide. Publishers reach it through ``get_hub()``; tests
swap it with ``set_hub()`` or drop it with ``reset_hub()``.
"""

_hub_instance = None


def get_hub():
    """Return the notification hub (singleton)."""
    global _hub_instance
    if _hub_instance is None:
        from realtime.hub import NotificationHub

        _hub_instance = NotificationHub()
    return _hub_instance


def set_hub(hub):
    global _hub_instance
    _hub_instance = hub


def reset_hub():
    """Reset the hub singleton (useful for testing)."""
    global _hub_instance
    _hub_instance = None
