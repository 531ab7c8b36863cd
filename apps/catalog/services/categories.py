import logging

from django.db import DatabaseError, transaction
from django.db.models import Count

from apps.catalog.exceptions import Conflict, InternalError, NotFound, ValidationError
from apps.catalog.models import AttributeDefinition, Category

from .pagination import paginate

logger = logging.getLogger(__name__)

CATEGORY_FIELDS = ('name', 'is_active', 'category_type')
ATTRIBUTE_FIELDS = ('name', 'value_type', 'required', 'display_order')


def _clean_name(name):
    if not isinstance(name, str):
        raise ValidationError('Le nom de la catégorie doit être une chaîne de caractères.')
    name = name.strip()
    if len(name) < Category.NAME_MIN_LENGTH:
        raise ValidationError(
            f'Le nom de la catégorie doit contenir au moins {Category.NAME_MIN_LENGTH} caractères.'
        )
    if len(name) > Category.NAME_MAX_LENGTH:
        raise ValidationError(
            f'Le nom de la catégorie ne doit pas dépasser {Category.NAME_MAX_LENGTH} caractères.'
        )
    return name


def _clean_attribute(data, partial=False):
    """Validate one attribute definition payload; returns the cleaned fields."""
    if not isinstance(data, dict):
        raise ValidationError('Chaque attribut doit être un objet.')
    cleaned = {}
    if 'name' in data or not partial:
        name = data.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Le nom de l'attribut est obligatoire.")
        cleaned['name'] = name.strip()
    if 'value_type' in data or not partial:
        value_type = data.get('value_type', AttributeDefinition.STRING)
        if value_type not in AttributeDefinition.value_types():
            raise ValidationError(f"Type d'attribut inconnu: {value_type}")
        cleaned['value_type'] = value_type
    if 'required' in data or not partial:
        cleaned['required'] = bool(data.get('required', False))
    if 'display_order' in data:
        cleaned['display_order'] = int(data['display_order'])
    return cleaned


class CategorySchemaRegistry:
    """
    Owns categories and their attribute schemas.
    Categories and attributes are always written together in one transaction.
    """

    @staticmethod
    def get(category_id):
        try:
            return Category.objects.prefetch_related('attributes').get(pk=category_id)
        except (Category.DoesNotExist, ValueError, TypeError):
            raise NotFound("La catégorie spécifiée n'existe pas")

    @staticmethod
    def create(name, is_active=True, category_type='', attributes=None):
        name = _clean_name(name)
        cleaned_attributes = [_clean_attribute(attr) for attr in attributes or []]
        names = [attr['name'] for attr in cleaned_attributes]
        if len(names) != len(set(names)):
            raise ValidationError('Deux attributs de la catégorie portent le même nom.')

        try:
            with transaction.atomic():
                category = Category.objects.create(
                    name=name,
                    is_active=True if is_active is None else bool(is_active),
                    category_type=category_type or '',
                )
                AttributeDefinition.objects.bulk_create([
                    AttributeDefinition(
                        category=category,
                        **{'display_order': position, **attr},
                    )
                    for position, attr in enumerate(cleaned_attributes)
                ])
        except DatabaseError as e:
            logger.exception("Category creation failed for %r", name)
            raise InternalError('Échec de la création de la catégorie', original=e)

        logger.info("Created category %s (%s) with %d attributes",
                    category.pk, category.name, len(cleaned_attributes))
        return CategorySchemaRegistry.get(category.pk)

    @staticmethod
    def update(category_id, patch):
        """
        Partial update; attributes in patch['attributes'] are upserted by id
        and never deleted.
        """
        patch = patch or {}
        try:
            with transaction.atomic():
                try:
                    category = Category.objects.select_for_update().get(pk=category_id)
                except (Category.DoesNotExist, ValueError, TypeError):
                    raise NotFound("La catégorie spécifiée n'existe pas")

                if patch.get('name') is not None:
                    category.name = _clean_name(patch['name'])
                if patch.get('is_active') is not None:
                    category.is_active = bool(patch['is_active'])
                if patch.get('category_type'):
                    category.category_type = patch['category_type']
                category.save()

                for attr in patch.get('attributes') or []:
                    CategorySchemaRegistry._upsert_attribute(category, attr)
        except DatabaseError as e:
            logger.exception("Category update failed for %s", category_id)
            raise InternalError('Échec de la mise à jour de la catégorie', original=e)

        logger.info("Updated category %s", category_id)
        return CategorySchemaRegistry.get(category_id)

    @staticmethod
    def _upsert_attribute(category, data):
        attribute_id = data.get('id') if isinstance(data, dict) else None
        existing = category.attributes.exclude(pk=attribute_id) if attribute_id else category.attributes.all()

        if attribute_id:
            try:
                attribute = category.attributes.get(pk=attribute_id)
            except (AttributeDefinition.DoesNotExist, ValueError, TypeError):
                raise NotFound(f"L'attribut {attribute_id} n'existe pas dans cette catégorie")
            fields = _clean_attribute(data, partial=True)
        else:
            attribute = AttributeDefinition(
                category=category,
                display_order=existing.count(),
            )
            fields = _clean_attribute(data)

        if 'name' in fields and existing.filter(name=fields['name']).exists():
            raise ValidationError(f"L'attribut {fields['name']} existe déjà dans cette catégorie.")
        for key, value in fields.items():
            setattr(attribute, key, value)
        attribute.save()
        return attribute

    @staticmethod
    def delete(category_id):
        try:
            with transaction.atomic():
                try:
                    category = Category.objects.select_for_update().get(pk=category_id)
                except (Category.DoesNotExist, ValueError, TypeError):
                    raise NotFound("La catégorie spécifiée n'existe pas")

                product_count = category.products.count()
                if product_count:
                    raise Conflict(
                        f'{product_count} produit(s) utilisent encore cette catégorie'
                    )
                deleted_attributes, _ = category.attributes.all().delete()
                category.delete()
        except DatabaseError as e:
            logger.exception("Category deletion failed for %s", category_id)
            raise InternalError('Échec de la suppression de la catégorie', original=e)

        logger.info("Deleted category %s and %d attributes", category_id, deleted_attributes)

    @staticmethod
    def list(page=1, limit=10, name_filter=None, include_inactive=False):
        queryset = Category.objects.prefetch_related('attributes')
        if not include_inactive:
            queryset = queryset.filter(is_active=True)
        if name_filter:
            queryset = queryset.filter(name__icontains=name_filter)
        return paginate(queryset.order_by('name', 'id'), page, limit)

    @staticmethod
    def statistics(page=1, limit=10, include_inactive=False):
        queryset = Category.objects.annotate(
            product_count=Count('products', distinct=True),
            attribute_count=Count('attributes', distinct=True),
        )
        if not include_inactive:
            queryset = queryset.filter(is_active=True)
        result = paginate(queryset.order_by('name', 'id'), page, limit)
        result.items = [
            {
                'id': cat.pk,
                'name': cat.name,
                'created_at': cat.created_at,
                'product_count': cat.product_count,
                'attribute_count': cat.attribute_count,
                'message': (
                    'Produits associés à cette catégorie'
                    if cat.product_count > 0
                    else "Il n'y a pas encore de produit associé à cette catégorie"
                ),
            }
            for cat in result.items
        ]
        return result
