"""Ordering bounded context: pizza orders from checkout to the customer's door.

Owns the catalogue reference data used for pricing, the directory of users,
addresses and branches, the Order aggregate with its status pipeline, and the
delivery zones used to dispatch couriers. Configuration is read from the
sibling ``domain.toml``; ``PROTEAN_ENV`` selects the overlay.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
