from django.db.models import Q, Value
from django.db.models.functions import Concat
from django_filters import rest_framework as filters

from apps.catalog.models import Offer, PriceHistory, Product


class ProductFilter(filters.FilterSet):
    """
    Product search filters.
    available is only applied when given: unset keeps unavailable products.
    """

    name = filters.CharFilter(field_name='name', lookup_expr='icontains')
    category_id = filters.NumberFilter(field_name='category_id')
    available = filters.BooleanFilter(field_name='available')

    # Price filters
    price_min = filters.NumberFilter(field_name='base_price', lookup_expr='gte')
    price_max = filters.NumberFilter(field_name='base_price', lookup_expr='lte')

    class Meta:
        model = Product
        fields = ['name', 'category_id', 'available', 'price_min', 'price_max']


class OfferFilter(filters.FilterSet):
    """Offer filters; keyword matches the product name or the seller name."""

    price_min = filters.NumberFilter(field_name='price', lookup_expr='gte')
    price_max = filters.NumberFilter(field_name='price', lookup_expr='lte')
    keyword = filters.CharFilter(method='filter_by_keyword')
    product_id = filters.NumberFilter(field_name='product_id')

    class Meta:
        model = Offer
        fields = ['price_min', 'price_max', 'keyword', 'product_id']

    def filter_by_keyword(self, queryset, name, value):
        if not value:
            return queryset
        queryset = queryset.annotate(
            owner_full_name=Concat('owner__first_name', Value(' '), 'owner__last_name')
        )
        return queryset.filter(
            Q(product__name__icontains=value)
            | Q(owner__username__icontains=value)
            | Q(owner__first_name__icontains=value)
            | Q(owner__last_name__icontains=value)
            | Q(owner_full_name__icontains=value)
        )


class PriceHistoryFilter(filters.FilterSet):

    entity_id = filters.NumberFilter(field_name='entity_id')
    price_kind = filters.ChoiceFilter(
        field_name='price_kind', choices=PriceHistory.PRICE_KIND_CHOICES
    )

    class Meta:
        model = PriceHistory
        fields = ['entity_id', 'price_kind']
