"""
Script to create sample catalog data for local development.
Run with: python manage.py shell < create_sample_data.py
"""
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.utils import timezone

from apps.catalog.models import Category
from apps.catalog.services import (
    CategorySchemaRegistry,
    OfferLedger,
    ProductCatalog,
    PromotionEngine,
)
from apps.catalog.services.permissions import SELLER

User = get_user_model()

# Create sellers
print("Creating sellers...")

seller_group, _ = Group.objects.get_or_create(name=SELLER)

alice, created = User.objects.get_or_create(
    username='alice',
    defaults={'first_name': 'Alice', 'last_name': 'Martin', 'email': 'alice@example.com'}
)
if created:
    alice.set_password('alice')
    alice.save()
alice.groups.add(seller_group)

bruno, created = User.objects.get_or_create(
    username='bruno',
    defaults={'first_name': 'Bruno', 'last_name': 'Petit', 'email': 'bruno@example.com'}
)
if created:
    bruno.set_password('bruno')
    bruno.save()
bruno.groups.add(seller_group)

# Create categories with their attribute schemas
print("Creating categories...")

CATEGORIES = [
    {
        'name': 'Téléphones',
        'category_type': 'Électronique',
        'attributes': [
            {'name': 'Marque', 'value_type': 'string', 'required': True},
            {'name': 'Capacité', 'value_type': 'number', 'required': True},
            {'name': 'Double SIM', 'value_type': 'boolean'},
        ],
    },
    {
        'name': 'Épicerie',
        'category_type': 'Alimentation',
        'attributes': [
            {'name': 'Poids', 'value_type': 'number', 'required': True},
            {'name': 'Date de péremption', 'value_type': 'date', 'required': True},
            {'name': 'Bio', 'value_type': 'boolean'},
        ],
    },
    {
        'name': 'Vêtements',
        'category_type': 'Mode',
        'attributes': [
            {'name': 'Taille', 'value_type': 'string', 'required': True},
            {'name': 'Couleur', 'value_type': 'string'},
        ],
    },
]

categories = {}
for data in CATEGORIES:
    existing = Category.objects.filter(name=data['name']).first()
    if existing:
        categories[data['name']] = existing
        continue
    categories[data['name']] = CategorySchemaRegistry.create(**data)

print(f"  {len(categories)} categories ready")

# Create products
print("Creating products...")

catalog = ProductCatalog()

PRODUCTS = [
    (alice, 'Téléphones', {
        'name': 'Smartphone X12',
        'description': 'Écran 6,5 pouces, 128 Go',
        'base_price': Decimal('499.00'),
        'stock': 25,
        'attribute_values': {'Marque': 'Nova', 'Capacité': 128, 'Double SIM': True},
        'photos': [
            {'url': 'https://images.example.com/x12-front.jpg', 'is_cover': True},
            'https://images.example.com/x12-back.jpg',
        ],
    }),
    (alice, 'Épicerie', {
        'name': "Huile d'olive vierge extra",
        'base_price': Decimal('12.90'),
        'stock': 120,
        'attribute_values': {
            'Poids': 0.75,
            'Date de péremption': (timezone.now() + timedelta(days=365)).date().isoformat(),
            'Bio': True,
        },
        'photos': ['https://images.example.com/huile.jpg'],
    }),
    (bruno, 'Vêtements', {
        'name': 'T-shirt coton',
        'base_price': Decimal('19.99'),
        'stock': 60,
        'attribute_values': {'Taille': 'M', 'Couleur': 'Bleu'},
        'photos': ['https://images.example.com/tshirt.jpg'],
    }),
]

products = []
for owner, category_name, data in PRODUCTS:
    data = dict(data, category_id=categories[category_name].pk)
    products.append(catalog.create(data, owner.pk))
    print(f"  Created product: {data['name']}")

# Create offers and promotions
print("Creating offers and promotions...")

for product in products:
    offer = OfferLedger.create(
        {'product_id': product.pk, 'price': product.base_price, 'stock': 10},
        product.owner_id,
    )
    promotion = PromotionEngine.create(
        {
            'offer_id': offer.pk,
            'discount_percent': Decimal('15'),
            'start_date': timezone.now(),
            'end_date': timezone.now() + timedelta(days=30),
        },
        product.owner_id,
    )
    print(f"  Offer #{offer.pk} at {offer.price}, promotion at {promotion.computed_price}")

print("\nSample data created successfully!")
