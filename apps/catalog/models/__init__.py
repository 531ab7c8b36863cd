"""
Catalog models for a marketplace with schema-driven product attributes.

Model Hierarchy:
- Category: Administrator-defined category (e.g., "Téléphones")
- AttributeDefinition: Schema entries of a category (Couleur, Capacité, ...)
- Product: Seller product with attribute values checked against the schema
- ProductPhoto: Photo references returned by the storage collaborator
- Offer: Priced, stocked listing of a product
- Promotion: Percentage discount on an offer with a derived price
- PriceHistory: Append-only price transition ledger
"""

from .category import Category
from .attribute import AttributeDefinition
from .product import Product, ProductPhoto
from .offer import Offer
from .promotion import Promotion
from .price_history import PriceHistory

__all__ = [
    'Category',
    'AttributeDefinition',
    'Product',
    'ProductPhoto',
    'Offer',
    'Promotion',
    'PriceHistory',
]
