from .categories import CategorySchemaRegistry
from .attributes import AttributeValidator
from .price_history import PriceHistoryRecorder
from .pricing import PricingEngine, compute_promotional_price
from .products import ProductCatalog
from .offers import OfferLedger
from .promotions import PromotionEngine
from .permissions import Caller, caller_from_user, is_owner_or_admin

__all__ = [
    'CategorySchemaRegistry',
    'AttributeValidator',
    'PriceHistoryRecorder',
    'PricingEngine',
    'compute_promotional_price',
    'ProductCatalog',
    'OfferLedger',
    'PromotionEngine',
    'Caller',
    'caller_from_user',
    'is_owner_or_admin',
]
