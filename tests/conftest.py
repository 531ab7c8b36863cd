"""Pytest configuration and fixtures."""

import os
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth.models import Group
from django.utils import timezone
from rest_framework.test import APIClient

from apps.catalog.exceptions import StorageError
from apps.catalog.services import CategorySchemaRegistry, OfferLedger, ProductCatalog
from apps.catalog.services.permissions import SELLER
from apps.catalog.services.storage import PhotoStorage, StoredPhoto


class FakePhotoStorage(PhotoStorage):
    """
    In-memory photo storage.
    Any source whose name contains "bad-upload" fails to upload.
    """

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.deleted = []

    def upload(self, source, folder=None):
        name = getattr(source, 'name', None) or str(source)
        if 'bad-upload' in name:
            raise StorageError(f'upload refused for {name}')
        public_id = f'photos/{len(self.uploads) + 1}-{os.path.basename(name)}'
        self.uploads.append(public_id)
        self.objects[public_id] = name
        return StoredPhoto(url=f'https://cdn.test/{public_id}', public_id=public_id)

    def delete(self, public_id):
        self.deleted.append(public_id)
        self.objects.pop(public_id, None)


@pytest.fixture
def storage():
    return FakePhotoStorage()


@pytest.fixture
def catalog(storage):
    return ProductCatalog(storage=storage)


@pytest.fixture
def seller_group(db):
    group, _ = Group.objects.get_or_create(name=SELLER)
    return group


@pytest.fixture
def seller(django_user_model, seller_group):
    user = django_user_model.objects.create_user(
        username='alice', password='secret', first_name='Alice', last_name='Martin'
    )
    user.groups.add(seller_group)
    return user


@pytest.fixture
def other_seller(django_user_model, seller_group):
    user = django_user_model.objects.create_user(
        username='bruno', password='secret', first_name='Bruno', last_name='Petit'
    )
    user.groups.add(seller_group)
    return user


@pytest.fixture
def phone_category(db):
    """Category with a required string and a required number attribute."""
    return CategorySchemaRegistry.create(
        name='Téléphones',
        attributes=[
            {'name': 'Marque', 'value_type': 'string', 'required': True},
            {'name': 'Capacité', 'value_type': 'number', 'required': True},
            {'name': 'Double SIM', 'value_type': 'boolean'},
            {'name': 'Sortie', 'value_type': 'date'},
        ],
    )


@pytest.fixture
def product(catalog, seller, phone_category):
    return catalog.create(
        {
            'name': 'Smartphone X12',
            'base_price': Decimal('499.00'),
            'stock': 5,
            'category_id': phone_category.pk,
            'attribute_values': {'Marque': 'Nova', 'Capacité': 128},
            'photos': ['https://images.test/x12.jpg'],
        },
        seller.pk,
    )


@pytest.fixture
def offer(product, seller):
    return OfferLedger.create(
        {'product_id': product.pk, 'price': Decimal('100.00'), 'stock': 3},
        seller.pk,
    )


@pytest.fixture
def promotion_period():
    start = timezone.now()
    return start, start + timedelta(days=7)


@pytest.fixture
def api_client():
    return APIClient()
