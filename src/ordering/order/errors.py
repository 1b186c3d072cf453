"""Order lifecycle errors that have no equivalent among protean's exceptions.

The HTTP layer maps ``CourierMismatchError`` to 403 and
``OrderStatusConflictError`` to 409.
"""


class CourierMismatchError(Exception):
    """A delivery actor tried to move an order assigned to another courier."""

    def __init__(self, order_id: str, courier_id: str | None):
        self.order_id = order_id
        self.courier_id = courier_id
        super().__init__(f"Order {order_id} is not assigned to courier {courier_id}")


class OrderStatusConflictError(Exception):
    """The order's status changed between the caller's read and write."""

    def __init__(self, order_id: str, expected: str, actual: str):
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Order {order_id} is {actual}, expected {expected}")
