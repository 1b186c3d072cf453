"""In-process publish/subscribe keyed by room name.

Rooms are ``branch:<id>`` for restaurant staff and ``client:<id>`` for
clients. Delivery is live only: nothing is stored for connections that join
later, and a failing connection never affects the publisher or the other
subscribers.
"""

import threading
from collections import defaultdict
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger(__name__)


def branch_room(branch_id) -> str:
    return f"branch:{branch_id}"


def client_room(client_id) -> str:
    return f"client:{client_id}"


class NotificationHub:
    def __init__(self):
        self._lock = threading.Lock()
        self._rooms: dict[str, dict[str, object]] = defaultdict(dict)
        self._memberships: dict[str, set[str]] = defaultdict(set)

    def subscribe(self, connection, room: str) -> None:
        with self._lock:
            self._rooms[room][connection.id] = connection
            self._memberships[connection.id].add(room)
        logger.debug("Connection joined room", connection_id=connection.id, room=room)

    def unsubscribe(self, connection, room: str) -> None:
        with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.pop(connection.id, None)
                if not members:
                    del self._rooms[room]
            self._memberships.get(connection.id, set()).discard(room)
        logger.debug("Connection left room", connection_id=connection.id, room=room)

    def disconnect(self, connection) -> None:
        """Remove the connection from every room it joined."""
        for room in self.rooms_of(connection):
            self.unsubscribe(connection, room)
        with self._lock:
            self._memberships.pop(connection.id, None)

    def rooms_of(self, connection) -> list[str]:
        with self._lock:
            return sorted(self._memberships.get(connection.id, set()))

    def publish(self, room: str, event: str, data: dict) -> int:
        """Send ``event`` to every connection in ``room``.

        Returns the number of connections that accepted the message.
        """
        with self._lock:
            members = list(self._rooms.get(room, {}).values())

        message = {
            "event": event,
            "room": room,
            "data": data,
            "sent_at": datetime.now(UTC).isoformat(),
        }
        delivered = 0
        for connection in members:
            try:
                connection.send(message)
                delivered += 1
            except Exception as exc:
                logger.warning(
                    "Failed to deliver message to connection",
                    connection_id=connection.id,
                    room=room,
                    notification_event=event,
                    error=str(exc),
                )
        logger.debug("Published to room", room=room, notification_event=event, delivered=delivered)
        return delivered

    def stats(self) -> dict:
        with self._lock:
            return {
                "connections": len(self._memberships),
                "rooms": {room: len(members) for room, members in sorted(self._rooms.items())},
            }
