import json

from rest_framework import serializers
from apps.catalog.models import (
    AttributeDefinition,
    Category,
    PriceHistory,
    Product,
    ProductPhoto,
)


class JSONObjectField(serializers.JSONField):
    """JSON field that also accepts a JSON-encoded string (multipart forms)."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                self.fail('invalid')
        return super().to_internal_value(data)


# =============================================================================
# Category Serializers
# =============================================================================

class AttributeDefinitionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AttributeDefinition
        fields = ['id', 'name', 'value_type', 'required', 'display_order']


class CategorySerializer(serializers.ModelSerializer):
    attributes = AttributeDefinitionSerializer(many=True, read_only=True)

    class Meta:
        model = Category
        fields = [
            'id', 'name', 'is_active', 'category_type', 'attributes',
            'created_at', 'updated_at'
        ]


class CategoryInputSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, trim_whitespace=False)
    is_active = serializers.BooleanField(required=False, allow_null=True)
    category_type = serializers.CharField(required=False, allow_blank=True)
    attributes = serializers.ListField(child=serializers.DictField(), required=False)


class CategoryStatisticsSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    created_at = serializers.DateTimeField()
    product_count = serializers.IntegerField()
    attribute_count = serializers.IntegerField()
    message = serializers.CharField()


# =============================================================================
# Product Serializers
# =============================================================================

class ProductPhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductPhoto
        fields = ['id', 'url', 'is_cover', 'created_at']


class ProductSerializer(serializers.ModelSerializer):
    """Product joined with its owner, category and photos."""
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    owner_name = serializers.SerializerMethodField()
    photos = ProductPhotoSerializer(many=True, read_only=True)
    cover_photo = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'base_price', 'stock', 'available',
            'category_id', 'category_name', 'attribute_values',
            'owner_id', 'owner_name', 'photos', 'cover_photo',
            'created_at', 'updated_at'
        ]

    def get_owner_name(self, obj):
        return obj.owner.get_full_name() or obj.owner.get_username()

    def get_cover_photo(self, obj):
        photo = obj.cover_photo
        return photo.url if photo else None


class ProductInputSerializer(serializers.Serializer):
    name = serializers.CharField(required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    base_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    stock = serializers.IntegerField(required=False)
    available = serializers.BooleanField(required=False, allow_null=True)
    category_id = serializers.IntegerField(required=False, allow_null=True)
    attribute_values = JSONObjectField(required=False)
    photos = serializers.ListField(child=serializers.JSONField(), required=False)
    photos_to_add = serializers.ListField(child=serializers.JSONField(), required=False)
    photos_to_delete = serializers.ListField(child=serializers.IntegerField(), required=False)


# =============================================================================
# Offer / Promotion Serializers
# =============================================================================

class OfferSerializer(serializers.Serializer):
    """Renders the denormalized offer view."""
    id = serializers.IntegerField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    stock = serializers.IntegerField()
    expiration_date = serializers.DateTimeField(allow_null=True)
    product_id = serializers.IntegerField()
    product_name = serializers.CharField()
    owner_id = serializers.IntegerField()
    owner_name = serializers.CharField()
    promotion_id = serializers.IntegerField(allow_null=True)


class OfferInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    stock = serializers.IntegerField(required=False)
    expiration_date = serializers.DateTimeField(required=False, allow_null=True)


class PromotionOfferSerializer(serializers.Serializer):
    product_name = serializers.CharField()
    cover_photo = serializers.CharField(allow_null=True)
    owner_name = serializers.CharField()


class PromotionSerializer(serializers.Serializer):
    """Renders the denormalized promotion view."""
    id = serializers.IntegerField()
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2)
    computed_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    offer_id = serializers.IntegerField()
    offer = PromotionOfferSerializer()


class PromotionInputSerializer(serializers.Serializer):
    offer_id = serializers.IntegerField(required=False)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)


# =============================================================================
# Price History Serializer
# =============================================================================

class PriceHistorySerializer(serializers.ModelSerializer):
    changed_by_username = serializers.CharField(
        source='changed_by.username', read_only=True, default=None
    )
    price_difference = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )
    percentage_change = serializers.FloatField(read_only=True)

    class Meta:
        model = PriceHistory
        fields = [
            'id', 'entity_id', 'price_kind',
            'old_price', 'new_price', 'price_difference', 'percentage_change',
            'changed_by', 'changed_by_username', 'changed_at', 'notes'
        ]
