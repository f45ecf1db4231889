"""Cart expiry: command and handler for purging idle cart lines.

Meant to be triggered periodically by an external scheduler through
``manage.py purge-carts``. Lines untouched for longer than the configured
``CART_TTL_HOURS`` are deleted; without a TTL the purge is a no-op and
carts live until checkout.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.fields import DateTime, Integer
from protean.utils.globals import current_domain

from storefront.cart.line import CartLine
from storefront.domain import storefront
from storefront.settings import get_settings

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CartLine")
class PurgeExpiredCartLines:
    ttl_hours = Integer(min_value=0)  # Optional: defaults to CART_TTL_HOURS
    as_of = DateTime()  # Optional: defaults to now


@storefront.command_handler(part_of=CartLine)
class PurgeExpiredCartLinesHandler:
    @handle(PurgeExpiredCartLines)
    def purge_expired_lines(self, command):
        ttl_hours = command.ttl_hours if command.ttl_hours is not None else get_settings().cart_ttl_hours
        if ttl_hours is None:
            logger.info("Cart TTL not configured, nothing to purge")
            return 0

        as_of = command.as_of or datetime.now(UTC)
        cutoff = as_of - timedelta(hours=ttl_hours)

        repo = current_domain.repository_for(CartLine)
        expired = [line for line in repo._dao.query.all().items if line.idle_since(cutoff)]
        for line in expired:
            repo._dao.delete(line)

        logger.info(
            "Expired cart lines purged",
            cutoff=cutoff.isoformat(),
            ttl_hours=ttl_hours,
            purged=len(expired),
        )
        return len(expired)


def purge_expired_lines(ttl_hours=None, as_of=None) -> int:
    return current_domain.process(
        PurgeExpiredCartLines(ttl_hours=ttl_hours, as_of=as_of),
        asynchronous=False,
    )
