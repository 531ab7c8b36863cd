import logging

from django.db import transaction

from apps.catalog.exceptions import ValidationError
from apps.catalog.models import PriceHistory

from .pagination import paginate

logger = logging.getLogger(__name__)


class PriceHistoryRecorder:
    """
    Append-only ledger of price transitions.
    Entries are only ever inserted, inside the transaction of the change
    they document.
    """

    @staticmethod
    def record_transition(entity_id, old_price, new_price, kind, changed_by=None, notes=''):
        if kind not in dict(PriceHistory.PRICE_KIND_CHOICES):
            raise ValidationError(f'Type de prix inconnu: {kind}')
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError('Price transitions must be recorded inside an atomic block')

        entry = PriceHistory.objects.create(
            entity_id=entity_id,
            price_kind=kind,
            old_price=old_price,
            new_price=new_price,
            changed_by_id=getattr(changed_by, 'pk', changed_by),
            notes=notes,
        )
        logger.info(
            "Price %s #%s: %s -> %s (by %s)",
            kind, entity_id, old_price, new_price, entry.changed_by_id,
        )
        return entry

    @staticmethod
    def list_history(entity_id, kind=None, page=1, limit=10):
        """
        Chronological listing for one entity (or a list of entity ids),
        optionally restricted to one price kind.
        """
        queryset = PriceHistory.objects.select_related('changed_by')
        if isinstance(entity_id, (list, tuple, set)):
            queryset = queryset.filter(entity_id__in=list(entity_id))
        else:
            queryset = queryset.filter(entity_id=entity_id)
        if kind:
            if kind not in dict(PriceHistory.PRICE_KIND_CHOICES):
                raise ValidationError(f'Type de prix inconnu: {kind}')
            queryset = queryset.filter(price_kind=kind)
        return paginate(queryset.order_by('changed_at', 'id'), page, limit)
