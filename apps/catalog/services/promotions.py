import datetime
import logging

from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.catalog.exceptions import Forbidden, InternalError, NotFound, ValidationError
from apps.catalog.models import Offer, Promotion
from apps.catalog.signals import notify, price_changed, promotion_created

from .offers import owner_display_name
from .permissions import is_owner_or_admin
from .pricing import HUNDRED, PricingEngine, compute_promotional_price, quantize, to_decimal

logger = logging.getLogger(__name__)


def _clean_discount(value):
    if value is None:
        raise ValidationError('Le pourcentage est obligatoire.')
    discount = to_decimal(value, 'pourcentage')
    if discount < 0 or discount > HUNDRED:
        raise ValidationError('Le pourcentage doit être compris entre 0 et 100.')
    return quantize(discount)


def _clean_datetime(value, label):
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, datetime.date):
        parsed = datetime.datetime.combine(value, datetime.time.min)
    elif isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            day = parse_date(value)
            parsed = datetime.datetime.combine(day, datetime.time.min) if day else None
    else:
        parsed = None
    if parsed is None:
        raise ValidationError(f'{label} invalide.')
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _check_period(start_date, end_date):
    if end_date < start_date:
        raise ValidationError('La date de fin doit suivre la date de début.')


class PromotionEngine:
    """
    Promotion lifecycle. Ownership is derived from the promoted offer and
    the promotional price is always recomputed from the live offer price.
    """

    @staticmethod
    def queryset():
        return Promotion.objects.select_related(
            'offer__product', 'offer__owner'
        ).prefetch_related('offer__product__photos')

    @staticmethod
    def read(promotion_id):
        try:
            return PromotionEngine.queryset().get(pk=promotion_id)
        except (Promotion.DoesNotExist, ValueError, TypeError):
            raise NotFound('Promotion non trouvée')

    @staticmethod
    def list():
        return list(PromotionEngine.queryset().order_by('id'))

    @staticmethod
    def view(promotion):
        product = promotion.offer.product
        cover = product.cover_photo
        return {
            'id': promotion.pk,
            'discount_percent': promotion.discount_percent,
            'computed_price': promotion.computed_price,
            'start_date': promotion.start_date,
            'end_date': promotion.end_date,
            'offer_id': promotion.offer_id,
            'offer': {
                'product_name': product.name,
                'cover_photo': cover.url if cover else None,
                'owner_name': owner_display_name(promotion.offer.owner),
            },
        }

    # -------------------------------------------------------------------------
    # Ownership helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def is_offer_owner(offer_id, user_id):
        return Offer.objects.filter(pk=offer_id, owner_id=user_id).exists()

    @staticmethod
    def is_promotion_owner(promotion_id, user_id):
        return Promotion.objects.filter(pk=promotion_id, offer__owner_id=user_id).exists()

    @staticmethod
    def _locked_offer(offer_id, user_id, message):
        try:
            offer = Offer.objects.select_for_update().get(pk=offer_id)
        except (Offer.DoesNotExist, ValueError, TypeError):
            raise NotFound("L'offre associée n'existe pas.")
        if not is_owner_or_admin(offer.owner_id, user_id):
            raise Forbidden(message)
        return offer

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    @staticmethod
    def create(data, user_id):
        data = data or {}
        discount = _clean_discount(data.get('discount_percent'))
        start_date = _clean_datetime(data.get('start_date'), 'Date de début')
        end_date = _clean_datetime(data.get('end_date'), 'Date de fin')
        _check_period(start_date, end_date)

        try:
            with transaction.atomic():
                offer = PromotionEngine._locked_offer(
                    data.get('offer_id'), user_id,
                    "Vous n'êtes pas autorisé à créer une promotion pour cette offre.",
                )
                promotion = Promotion.objects.create(
                    offer=offer,
                    discount_percent=discount,
                    computed_price=compute_promotional_price(offer.price, discount),
                    start_date=start_date,
                    end_date=end_date,
                )
                notify(promotion_created, Promotion, instance=promotion)
        except DatabaseError as e:
            logger.exception("Promotion creation failed")
            raise InternalError(f'Erreur lors de la création de la promotion: {e}', original=e)

        logger.info("Created promotion %s (-%s%%) on offer %s",
                    promotion.pk, discount, promotion.offer_id)
        return PromotionEngine.read(promotion.pk)

    @staticmethod
    def update(promotion_id, patch, user_id):
        patch = patch or {}
        try:
            with transaction.atomic():
                try:
                    promotion = Promotion.objects.select_for_update().get(pk=promotion_id)
                except (Promotion.DoesNotExist, ValueError, TypeError):
                    raise NotFound('Promotion non trouvée.')
                offer = PromotionEngine._locked_offer(
                    promotion.offer_id, user_id,
                    "Vous n'êtes pas autorisé à mettre à jour cette promotion.",
                )

                if patch.get('discount_percent') is not None:
                    promotion.discount_percent = _clean_discount(patch['discount_percent'])
                if patch.get('start_date') is not None:
                    promotion.start_date = _clean_datetime(patch['start_date'], 'Date de début')
                if patch.get('end_date') is not None:
                    promotion.end_date = _clean_datetime(patch['end_date'], 'Date de fin')
                _check_period(promotion.start_date, promotion.end_date)

                entry = PricingEngine.reprice_promotion(promotion, offer.price, user_id)
                promotion.save()
                if entry is not None:
                    notify(price_changed, Promotion, entry=entry)
        except DatabaseError as e:
            logger.exception("Promotion update failed for %s", promotion_id)
            raise InternalError(f'Erreur lors de la mise à jour de la promotion: {e}', original=e)

        logger.info("Updated promotion %s by user %s", promotion_id, user_id)
        return PromotionEngine.read(promotion_id)

    @staticmethod
    def delete(promotion_id, user_id):
        try:
            with transaction.atomic():
                try:
                    promotion = Promotion.objects.select_for_update().get(pk=promotion_id)
                except (Promotion.DoesNotExist, ValueError, TypeError):
                    raise NotFound('Promotion non trouvée.')
                PromotionEngine._locked_offer(
                    promotion.offer_id, user_id,
                    "Vous n'êtes pas autorisé à supprimer cette promotion.",
                )
                deleted_id = promotion.pk
                promotion.delete()
        except DatabaseError as e:
            logger.exception("Promotion deletion failed for %s", promotion_id)
            raise InternalError(f'Erreur lors de la suppression de la promotion: {e}', original=e)

        logger.info("Deleted promotion %s by user %s", promotion_id, user_id)
        return {'message': 'Promotion supprimée avec succès', 'promotion_id': deleted_id}
