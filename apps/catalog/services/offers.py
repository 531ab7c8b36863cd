import logging

from django.db import DatabaseError, transaction
from django.utils.dateparse import parse_datetime

from apps.catalog.api.filters import OfferFilter
from apps.catalog.exceptions import Forbidden, InternalError, NotFound, ValidationError
from apps.catalog.models import Offer, PriceHistory, Product
from apps.catalog.signals import notify, price_changed

from .pagination import paginate
from .permissions import is_owner_or_admin
from .pricing import PricingEngine, quantize, to_decimal

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ('id', 'price', 'stock', 'expiration_date', 'created_at')


def owner_display_name(user):
    return user.get_full_name() or user.get_username()


def _clean_price(value):
    price = to_decimal(value, 'prix')
    if price <= 0:
        raise ValidationError('Le prix doit être strictement positif.')
    return quantize(price)


def _clean_stock(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError('Le stock doit être un entier.')
    if value < 0:
        raise ValidationError('Le stock ne peut pas être inférieur à zéro.')
    return value


def _clean_expiration(value):
    if value is None or hasattr(value, 'tzinfo'):
        return value
    parsed = parse_datetime(str(value))
    if parsed is None:
        raise ValidationError("Date d'expiration invalide.")
    return parsed


class OfferLedger:
    """
    Offer lifecycle. Ownership is offer-scoped: only the seller who created
    an offer may change or delete it, administrators included.
    """

    @staticmethod
    def queryset():
        return Offer.objects.select_related('product', 'owner').prefetch_related('promotions')

    @staticmethod
    def read(offer_id):
        try:
            return OfferLedger.queryset().get(pk=offer_id)
        except (Offer.DoesNotExist, ValueError, TypeError):
            raise NotFound('Offre non trouvée')

    @staticmethod
    def view(offer):
        """Denormalized representation shared by every offer operation."""
        return {
            'id': offer.pk,
            'price': offer.price,
            'stock': offer.stock,
            'expiration_date': offer.expiration_date,
            'product_id': offer.product_id,
            'product_name': offer.product.name,
            'owner_id': offer.owner_id,
            'owner_name': owner_display_name(offer.owner),
            'promotion_id': offer.promotion_id,
        }

    @staticmethod
    def create(data, owner_id):
        data = data or {}
        if data.get('price') is None:
            raise ValidationError('Le prix est obligatoire.')
        price = _clean_price(data['price'])
        stock = _clean_stock(data['stock'] if data.get('stock') is not None else 0)
        expiration_date = _clean_expiration(data.get('expiration_date'))

        product_id = data.get('product_id')
        if not product_id or not Product.objects.filter(pk=product_id).exists():
            raise NotFound("Le produit spécifié n'existe pas")

        try:
            offer = Offer.objects.create(
                product_id=product_id,
                owner_id=owner_id,
                price=price,
                stock=stock,
                expiration_date=expiration_date,
            )
        except DatabaseError as e:
            logger.exception("Offer creation failed")
            raise InternalError("Erreur lors de la création de l'offre", original=e)

        logger.info("Created offer %s on product %s for user %s", offer.pk, product_id, owner_id)
        return OfferLedger.read(offer.pk)

    @staticmethod
    def list(filters=None):
        filters = dict(filters or {})
        page = filters.pop('page', None)
        limit = filters.pop('limit', None)
        sort_by = filters.pop('sort_by', None) or 'id'
        order = (filters.pop('order', None) or 'asc').lower()

        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(f'Tri impossible sur {sort_by}')
        if order not in ('asc', 'desc'):
            raise ValidationError("L'ordre doit être 'asc' ou 'desc'")

        filterset = OfferFilter(
            {key: value for key, value in filters.items() if value not in (None, '')},
            queryset=OfferLedger.queryset(),
        )
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)

        ordering = sort_by if order == 'asc' else f'-{sort_by}'
        return paginate(filterset.qs.order_by(ordering, 'id'), page, limit)

    @staticmethod
    def _owned_for_update(offer_id, user_id, action):
        try:
            offer = Offer.objects.select_for_update().get(pk=offer_id)
        except (Offer.DoesNotExist, ValueError, TypeError):
            raise NotFound('Offre non trouvée')
        if not is_owner_or_admin(offer.owner_id, user_id):
            raise Forbidden(f"Vous n'êtes pas autorisé à {action} cette offre")
        return offer

    @staticmethod
    def update(offer_id, patch, user_id):
        patch = patch or {}
        try:
            with transaction.atomic():
                offer = OfferLedger._owned_for_update(offer_id, user_id, 'modifier')

                if patch.get('stock') is not None:
                    offer.stock = _clean_stock(patch['stock'])
                if 'expiration_date' in patch:
                    offer.expiration_date = _clean_expiration(patch['expiration_date'])

                entries = []
                if patch.get('price') is not None:
                    entry = PricingEngine.apply_price_change(
                        offer, 'price', _clean_price(patch['price']), PriceHistory.OFFER, user_id,
                    )
                    if entry is not None:
                        entries.append(entry)
                offer.save()

                if entries:
                    entries.extend(PricingEngine.reprice_offer_promotions(offer, user_id))
                for entry in entries:
                    notify(price_changed, Offer, entry=entry)
        except DatabaseError as e:
            logger.exception("Offer update failed for %s", offer_id)
            raise InternalError(f"Erreur lors de la mise à jour de l'offre: {e}", original=e)

        logger.info("Updated offer %s by user %s", offer_id, user_id)
        return OfferLedger.read(offer_id)

    @staticmethod
    def delete(offer_id, user_id):
        try:
            with transaction.atomic():
                offer = OfferLedger._owned_for_update(offer_id, user_id, 'supprimer')
                deleted_id = offer.pk
                offer.delete()
        except DatabaseError as e:
            logger.exception("Offer deletion failed for %s", offer_id)
            raise InternalError(f"Erreur lors de la suppression de l'offre: {e}", original=e)

        logger.info("Deleted offer %s by user %s", offer_id, user_id)
        return {'message': 'Offre supprimée avec succès', 'offer_id': deleted_id}
