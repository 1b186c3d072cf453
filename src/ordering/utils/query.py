"""Repository reads that return every matching row.

Protean caps a query at the aggregate's ``limit`` (100 by default). Order
listings, workload counts and zone scans must see all rows, so the cap is
lifted on each of these reads.
"""

from protean.utils.globals import current_domain


def find_all(aggregate_cls, order_by=None, **filters) -> list:
    """Return all ``aggregate_cls`` records matching ``filters``.

    ``order_by`` takes a field name or a list of them, ``-`` prefixed for
    descending order, and is applied by the database.
    """
    query = current_domain.repository_for(aggregate_cls)._dao.query.filter(**filters)
    if order_by:
        query = query.order_by(order_by)
    # limit() goes last: the other QuerySet methods clone with the default cap
    return query.limit(None).all().items
