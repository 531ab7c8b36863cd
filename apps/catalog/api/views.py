from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.catalog.exceptions import ValidationError
from apps.catalog.models import PriceHistory
from apps.catalog.services import (
    CategorySchemaRegistry,
    OfferLedger,
    ProductCatalog,
    PromotionEngine,
)
from apps.catalog.services.pagination import paginate
from apps.catalog.services.permissions import ADMIN, role_for_user
from .filters import PriceHistoryFilter
from .permissions import IsCatalogAdmin, IsCatalogAdminOrReadOnly, IsSellerOrReadOnly
from .serializers import (
    CategoryInputSerializer,
    CategorySerializer,
    CategoryStatisticsSerializer,
    OfferInputSerializer,
    OfferSerializer,
    PriceHistorySerializer,
    ProductInputSerializer,
    ProductSerializer,
    PromotionInputSerializer,
    PromotionSerializer,
)


def _validated(serializer_class, data):
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationError(serializer.errors)
    return dict(serializer.validated_data)


def _page_params(request):
    return request.query_params.get('page'), request.query_params.get('limit')


class CategoryViewSet(viewsets.ViewSet):
    """
    API endpoint for categories and their attribute schemas.

    Reads are public; mutations and statistics are reserved to
    administrators, who also see inactive categories.
    """
    permission_classes = [IsCatalogAdminOrReadOnly]

    def get_permissions(self):
        if self.action == 'statistics':
            return [IsCatalogAdmin()]
        return super().get_permissions()

    def _include_inactive(self):
        return role_for_user(self.request.user) == ADMIN

    def list(self, request):
        page, limit = _page_params(request)
        result = CategorySchemaRegistry.list(
            page, limit,
            name_filter=request.query_params.get('nomCategorie'),
            include_inactive=self._include_inactive(),
        )
        return Response(result.as_dict(lambda c: CategorySerializer(c).data))

    def retrieve(self, request, pk=None):
        category = CategorySchemaRegistry.get(pk)
        return Response(CategorySerializer(category).data)

    def create(self, request):
        data = _validated(CategoryInputSerializer, request.data)
        category = CategorySchemaRegistry.create(
            name=data.get('name'),
            is_active=data.get('is_active'),
            category_type=data.get('category_type', ''),
            attributes=data.get('attributes'),
        )
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        data = _validated(CategoryInputSerializer, request.data)
        category = CategorySchemaRegistry.update(pk, data)
        return Response(CategorySerializer(category).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        CategorySchemaRegistry.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def statistics(self, request):
        """Product and attribute counts per category."""
        page, limit = _page_params(request)
        result = CategorySchemaRegistry.statistics(
            page, limit, include_inactive=self._include_inactive()
        )
        return Response(result.as_dict(lambda s: CategoryStatisticsSerializer(s).data))


class ProductViewSet(viewsets.ViewSet):
    """
    API endpoint for products.

    create accepts JSON or multipart; files sent as `photos` are uploaded
    to the photo storage before the product is written.
    """
    permission_classes = [IsSellerOrReadOnly]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    # Query parameter -> ProductFilter field
    SEARCH_PARAMS = {
        'nom': 'name',
        'categorieId': 'category_id',
        'disponibilite': 'available',
        'prixMin': 'price_min',
        'prixMax': 'price_max',
        'page': 'page',
        'limit': 'limit',
    }

    def get_catalog(self):
        return ProductCatalog()

    def _payload(self, request, photo_key):
        """Validated body; uploaded files are appended to photo_key."""
        files = request.FILES.getlist('photos')
        data = _validated(ProductInputSerializer, request.POST if request.FILES else request.data)
        if files:
            data[photo_key] = list(data.get(photo_key) or []) + files
        return data

    @staticmethod
    def _serialize(product):
        return ProductSerializer(product).data

    def list(self, request):
        page, limit = _page_params(request)
        result = self.get_catalog().list(page, limit)
        return Response(result.as_dict(self._serialize))

    def retrieve(self, request, pk=None):
        return Response(self._serialize(self.get_catalog().read(pk)))

    def create(self, request):
        data = self._payload(request, 'photos')
        product = self.get_catalog().create(data, request.user.pk)
        return Response(self._serialize(product), status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        data = self._payload(request, 'photos_to_add')
        product = self.get_catalog().update(
            pk, data, request.user.pk, role_for_user(request.user)
        )
        return Response(self._serialize(product))

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        self.get_catalog().delete(pk, request.user.pk, role_for_user(request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def search(self, request):
        """
        Search products.

        Query params: nom, categorieId, disponibilite, prixMin, prixMax,
        page, limit. disponibilite is only applied when given.
        """
        filters = {
            field: request.query_params.get(param)
            for param, field in self.SEARCH_PARAMS.items()
            if param in request.query_params
        }
        result = self.get_catalog().search(filters)
        return Response(result.as_dict(self._serialize))

    @action(detail=True, methods=['get'], url_path='historique-prix')
    def price_history(self, request, pk=None):
        """Price history of a product; typePrix selects PRODUCT, OFFER or PROMOTION."""
        product = self.get_catalog().read(pk)
        price_kind = request.query_params.get('typePrix') or PriceHistory.PRODUCT
        if price_kind not in dict(PriceHistory.PRICE_KIND_CHOICES):
            raise ValidationError(f'Type de prix inconnu: {price_kind}')
        page, limit = _page_params(request)
        result = ProductCatalog.price_history(product.pk, price_kind, page, limit)
        return Response(result.as_dict(lambda e: PriceHistorySerializer(e).data))


class OfferViewSet(viewsets.ViewSet):
    """
    API endpoint for offers.

    Only the seller who created an offer may modify or delete it.
    """
    permission_classes = [IsSellerOrReadOnly]

    LIST_PARAMS = {
        'page': 'page',
        'limit': 'limit',
        'sortBy': 'sort_by',
        'order': 'order',
        'priceMin': 'price_min',
        'priceMax': 'price_max',
        'keyword': 'keyword',
        'productId': 'product_id',
    }

    @staticmethod
    def _serialize(offer):
        return OfferSerializer(OfferLedger.view(offer)).data

    def list(self, request):
        filters = {
            field: request.query_params.get(param)
            for param, field in self.LIST_PARAMS.items()
            if param in request.query_params
        }
        result = OfferLedger.list(filters)
        return Response(result.as_dict(self._serialize))

    def retrieve(self, request, pk=None):
        return Response(self._serialize(OfferLedger.read(pk)))

    def create(self, request):
        data = _validated(OfferInputSerializer, request.data)
        offer = OfferLedger.create(data, request.user.pk)
        return Response(self._serialize(offer), status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        data = _validated(OfferInputSerializer, request.data)
        offer = OfferLedger.update(pk, data, request.user.pk)
        return Response(self._serialize(offer))

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        return Response(OfferLedger.delete(pk, request.user.pk))


class PromotionViewSet(viewsets.ViewSet):
    """API endpoint for promotions on offers."""
    permission_classes = [IsSellerOrReadOnly]

    @staticmethod
    def _serialize(promotion):
        return PromotionSerializer(PromotionEngine.view(promotion)).data

    def list(self, request):
        return Response([self._serialize(p) for p in PromotionEngine.list()])

    def retrieve(self, request, pk=None):
        return Response(self._serialize(PromotionEngine.read(pk)))

    def create(self, request):
        data = _validated(PromotionInputSerializer, request.data)
        promotion = PromotionEngine.create(data, request.user.pk)
        return Response(self._serialize(promotion), status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        data = _validated(PromotionInputSerializer, request.data)
        promotion = PromotionEngine.update(pk, data, request.user.pk)
        return Response(self._serialize(promotion))

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        return Response(PromotionEngine.delete(pk, request.user.pk))


class PriceHistoryViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API endpoint for price history (read-only).
    """
    queryset = PriceHistory.objects.select_related('changed_by')
    serializer_class = PriceHistorySerializer

    def list(self, request):
        filterset = PriceHistoryFilter(
            {
                'entity_id': request.query_params.get('entityId'),
                'price_kind': request.query_params.get('priceKind'),
            },
            queryset=self.get_queryset(),
        )
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        page, limit = _page_params(request)
        result = paginate(filterset.qs.order_by('changed_at', 'id'), page, limit)
        return Response(result.as_dict(lambda e: PriceHistorySerializer(e).data))
