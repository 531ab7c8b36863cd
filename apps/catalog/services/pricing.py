"""
Derived prices and the decision of when a price change gets recorded.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from apps.catalog.exceptions import ValidationError
from apps.catalog.models import PriceHistory

from .price_history import PriceHistoryRecorder

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def to_decimal(value, field='prix') -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f'{field}: valeur numérique attendue')
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f'{field}: valeur numérique attendue')


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_promotional_price(offer_price, discount_percent) -> Decimal:
    """offer_price * (1 - discount_percent / 100), rounded to the cent."""
    price = to_decimal(offer_price, 'prix')
    discount = to_decimal(discount_percent, 'pourcentage')
    if discount < 0 or discount > HUNDRED:
        raise ValidationError('Le pourcentage doit être compris entre 0 et 100.')
    return quantize(price * (1 - discount / HUNDRED))


def price_changed(old_price, new_price) -> bool:
    if old_price is None or new_price is None:
        return old_price is not new_price
    return quantize(old_price) != quantize(new_price)


class PricingEngine:

    @staticmethod
    def apply_price_change(instance, field, new_price, kind, changed_by=None, notes=''):
        """
        Record the transition of instance.<field> to new_price and set it.
        Returns the new PriceHistory entry, or None when the price did not
        change. The caller saves the instance inside the same atomic block.
        """
        old_price = getattr(instance, field)
        new_price = quantize(new_price)
        if not price_changed(old_price, new_price):
            return None
        entry = PriceHistoryRecorder.record_transition(
            instance.pk, old_price, new_price, kind, changed_by, notes,
        )
        setattr(instance, field, new_price)
        return entry

    @staticmethod
    def reprice_promotion(promotion, offer_price, changed_by=None, notes=''):
        """
        Recompute a promotion from an offer price. Unsaved promotions are
        only priced; saved ones get a PROMOTION entry when the price moves.
        """
        new_price = compute_promotional_price(offer_price, promotion.discount_percent)
        if promotion.pk is None:
            promotion.computed_price = new_price
            return None
        return PricingEngine.apply_price_change(
            promotion, 'computed_price', new_price, PriceHistory.PROMOTION, changed_by, notes,
        )

    @staticmethod
    def reprice_offer_promotions(offer, changed_by=None):
        """Recompute every promotion of an offer after its price moved."""
        entries = []
        for promotion in offer.promotions.select_for_update():
            entry = PricingEngine.reprice_promotion(
                promotion, offer.price, changed_by,
                notes=f"Prix de l'offre #{offer.pk} modifié",
            )
            if entry is not None:
                promotion.save(update_fields=['computed_price', 'updated_at'])
                entries.append(entry)
        return entries
