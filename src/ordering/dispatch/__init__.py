"""Courier dispatch: zones, assignments and the process-wide assignment service."""

_service_instance = None


def get_assignment_service():
    """Return the assignment service (singleton).

    The zone cache lives on the instance, so every dispatch in the process
    shares it.
    """
    global _service_instance
    if _service_instance is None:
        from ordering.dispatch.assignment import AssignmentService

        _service_instance = AssignmentService()
    return _service_instance


def set_assignment_service(service):
    global _service_instance
    _service_instance = service


def reset_assignment_service():
    """Reset the assignment service singleton (useful for testing)."""
    global _service_instance
    _service_instance = None
