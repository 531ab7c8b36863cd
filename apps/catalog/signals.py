"""
Notification hooks of the catalog app.

Signals are sent after the surrounding transaction commits and with
send_robust, so a failing receiver never breaks the operation that
triggered it. Price changes are recorded by PriceHistoryRecorder inside the
transaction; price_changed only announces them.
"""

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

# sender=Product, instance=<Product>
product_created = Signal()
# sender=Product, product_id=<int>
product_deleted = Signal()
# sender=<model class>, entry=<PriceHistory>
price_changed = Signal()
# sender=Promotion, instance=<Promotion>
promotion_created = Signal()


def notify(signal, sender, **kwargs):
    """Fire-and-forget dispatch once the current transaction commits."""
    def _send():
        for receiver, response in signal.send_robust(sender=sender, **kwargs):
            if isinstance(response, Exception):
                logger.warning(
                    "Receiver %r failed for %s: %s", receiver, sender.__name__, response
                )

    transaction.on_commit(_send)
