import logging

from django.db import DatabaseError, transaction

from apps.catalog.api.filters import ProductFilter
from apps.catalog.exceptions import InternalError, NotFound, StorageError, ValidationError
from apps.catalog.models import Offer, PriceHistory, Product, ProductPhoto, Promotion
from apps.catalog.signals import notify, price_changed, product_created, product_deleted

from .attributes import AttributeValidator
from .pagination import paginate
from .permissions import ensure_owner_or_admin
from .price_history import PriceHistoryRecorder
from .pricing import PricingEngine, quantize, to_decimal
from .storage import get_photo_storage, needs_upload

logger = logging.getLogger(__name__)


def _photo_source(photo):
    """Return (source, is_cover) for a photo payload."""
    if isinstance(photo, dict):
        source = photo.get('file') or photo.get('local_path') or photo.get('url')
        return source, bool(photo.get('is_cover', False))
    return photo, False


class ProductCatalog:
    """
    Product lifecycle: attribute validation, photo reconciliation and
    product price history. Photos are uploaded before the database
    transaction that references them.
    """

    def __init__(self, storage=None):
        self.storage = storage or get_photo_storage()

    @staticmethod
    def queryset():
        return Product.objects.select_related('owner', 'category').prefetch_related('photos')

    def read(self, product_id):
        try:
            return self.queryset().get(pk=product_id)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise NotFound('Produit non trouvé')

    # -------------------------------------------------------------------------
    # Field cleaning
    # -------------------------------------------------------------------------

    @staticmethod
    def clean_fields(data, partial=False):
        cleaned = {}

        if 'name' in data or not partial:
            name = data.get('name')
            if not isinstance(name, str) or not name.strip():
                raise ValidationError('Le nom du produit est obligatoire.')
            cleaned['name'] = name.strip()

        if 'description' in data:
            cleaned['description'] = data.get('description') or ''

        if 'base_price' in data or not partial:
            if data.get('base_price') is None:
                raise ValidationError('Le prix initial est obligatoire.')
            price = to_decimal(data['base_price'], 'prix initial')
            if price < 0:
                raise ValidationError('Le prix initial ne peut pas être négatif.')
            cleaned['base_price'] = quantize(price)

        if data.get('stock') is not None:
            stock = data['stock']
            if isinstance(stock, bool) or not isinstance(stock, int):
                raise ValidationError('Le stock doit être un entier.')
            if stock < 0:
                raise ValidationError('Le stock ne peut pas être inférieur à zéro.')
            cleaned['stock'] = stock

        if data.get('available') is not None:
            cleaned['available'] = bool(data['available'])

        return cleaned

    # -------------------------------------------------------------------------
    # Photos
    # -------------------------------------------------------------------------

    def _upload_photos(self, photos, uploaded):
        """
        Upload local photo payloads in order. Stored ids are appended to
        uploaded so the caller can clean up; the first failure cleans up and
        raises InternalError.
        """
        prepared = []
        for photo in photos or []:
            source, is_cover = _photo_source(photo)
            if not source:
                raise ValidationError('Photo sans URL ni fichier.')
            if needs_upload(source):
                try:
                    stored = self.storage.upload(source)
                except (StorageError, OSError) as e:
                    self._discard_uploads(uploaded)
                    raise InternalError(f"Erreur lors du téléversement de l'image: {e}", original=e)
                uploaded.append(stored.public_id)
                prepared.append({'url': stored.url, 'storage_id': stored.public_id, 'is_cover': is_cover})
            else:
                prepared.append({'url': source, 'storage_id': '', 'is_cover': is_cover})
        return prepared

    def _discard_uploads(self, public_ids):
        for public_id in public_ids:
            self.delete_stored(public_id)
        del public_ids[:]

    def delete_stored(self, public_id):
        """Best-effort storage delete; failures are logged."""
        if not public_id:
            return
        try:
            self.storage.delete(public_id)
        except (StorageError, OSError) as e:
            logger.warning("Could not delete stored photo %s: %s", public_id, e)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create(self, data, owner_id):
        data = dict(data or {})
        photos = data.pop('photos', None) or []
        category_id = data.get('category_id') or None

        attribute_values = AttributeValidator.validate(category_id, data.get('attribute_values'))
        fields = self.clean_fields(data)

        uploaded = []
        prepared = self._upload_photos(photos, uploaded)
        try:
            with transaction.atomic():
                product = Product.objects.create(
                    owner_id=owner_id,
                    category_id=category_id,
                    attribute_values=attribute_values,
                    **fields,
                )
                ProductPhoto.objects.bulk_create([
                    ProductPhoto(product=product, **photo) for photo in prepared
                ])
                notify(product_created, Product, instance=product)
        except DatabaseError as e:
            self._discard_uploads(uploaded)
            logger.exception("Product creation failed")
            raise InternalError(f'Erreur lors de la création du produit: {e}', original=e)
        except Exception:
            self._discard_uploads(uploaded)
            raise

        logger.info("Created product %s with %d photos for user %s",
                    product.pk, len(prepared), owner_id)
        return self.read(product.pk)

    def list(self, page=1, limit=10):
        return paginate(self.queryset().order_by('id'), page, limit)

    def search(self, filters=None):
        filters = dict(filters or {})
        page = filters.pop('page', None)
        limit = filters.pop('limit', None)
        filterset = ProductFilter(
            {key: value for key, value in filters.items() if value is not None},
            queryset=self.queryset(),
        )
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        return paginate(filterset.qs.order_by('id'), page, limit)

    def update(self, product_id, patch, user_id, role=None):
        patch = dict(patch or {})
        photos_to_delete = patch.pop('photos_to_delete', None) or []
        photos_to_add = patch.pop('photos_to_add', None) or []

        product = self.read(product_id)
        ensure_owner_or_admin(product.owner_id, user_id, role, 'Accès non autorisé')

        fields = self.clean_fields(patch, partial=True)
        new_price = fields.pop('base_price', None)

        attributes_touched = 'category_id' in patch or 'attribute_values' in patch
        if attributes_touched:
            category_id = patch.get('category_id') if 'category_id' in patch else product.category_id
            category_id = category_id or None
            merged = dict(product.attribute_values or {})
            # Keys of renamed or removed attributes are dropped
            if category_id:
                schema_names = {attr.name for attr in AttributeValidator.load_schema(category_id)}
                merged = {k: v for k, v in merged.items() if k in schema_names}
            merged.update(patch.get('attribute_values') or {})
            attribute_values = AttributeValidator.validate(category_id, merged)

        uploaded = []
        prepared = self._upload_photos(photos_to_add, uploaded)
        try:
            with transaction.atomic():
                product = Product.objects.select_for_update().get(pk=product.pk)

                if photos_to_delete:
                    doomed = list(product.photos.filter(pk__in=photos_to_delete))
                    ProductPhoto.objects.filter(pk__in=[p.pk for p in doomed]).delete()
                    for photo in doomed:
                        transaction.on_commit(
                            lambda public_id=photo.storage_id: self.delete_stored(public_id)
                        )

                ProductPhoto.objects.bulk_create([
                    ProductPhoto(product=product, **photo) for photo in prepared
                ])

                if attributes_touched:
                    product.category_id = category_id
                    product.attribute_values = attribute_values

                if new_price is not None:
                    entry = PricingEngine.apply_price_change(
                        product, 'base_price', new_price, PriceHistory.PRODUCT, user_id,
                    )
                    if entry is not None:
                        notify(price_changed, Product, entry=entry)

                for key, value in fields.items():
                    setattr(product, key, value)
                product.save()
        except DatabaseError as e:
            self._discard_uploads(uploaded)
            logger.exception("Product update failed for %s", product_id)
            raise InternalError(f'Erreur lors de la modification du produit: {e}', original=e)
        except Exception:
            self._discard_uploads(uploaded)
            raise

        logger.info("Updated product %s by user %s", product_id, user_id)
        return self.read(product_id)

    def delete(self, product_id, user_id, role=None):
        product = self.read(product_id)
        ensure_owner_or_admin(product.owner_id, user_id, role, 'Accès non autorisé')

        for photo in product.photos.all():
            self.delete_stored(photo.storage_id)

        try:
            with transaction.atomic():
                ProductPhoto.objects.filter(product_id=product.pk).delete()
                product.delete()
                notify(product_deleted, Product, product_id=product_id)
        except DatabaseError as e:
            logger.exception("Product deletion failed for %s", product_id)
            raise InternalError(f'Erreur lors de la suppression du produit: {e}', original=e)

        logger.info("Deleted product %s by user %s", product_id, user_id)

    @staticmethod
    def price_history(product_id, price_kind=None, page=1, limit=10):
        """
        Price history of a product. OFFER and PROMOTION kinds list the
        entries of the product's offers and their promotions.
        """
        price_kind = price_kind or PriceHistory.PRODUCT
        if price_kind == PriceHistory.OFFER:
            entity_ids = list(Offer.objects.filter(product_id=product_id).values_list('id', flat=True))
        elif price_kind == PriceHistory.PROMOTION:
            entity_ids = list(
                Promotion.objects.filter(offer__product_id=product_id).values_list('id', flat=True)
            )
        else:
            entity_ids = product_id
        return PriceHistoryRecorder.list_history(entity_ids, price_kind, page, limit)
