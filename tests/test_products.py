"""ProductCatalog tests."""

from decimal import Decimal

import pytest
from django.db import transaction

from apps.catalog.exceptions import Forbidden, InternalError, NotFound, ValidationError
from apps.catalog.models import PriceHistory, Product, ProductPhoto
from apps.catalog.services import CategorySchemaRegistry, ProductCatalog
from apps.catalog.services.permissions import ADMIN, SELLER


def product_data(category, **overrides):
    data = {
        'name': 'Smartphone Z',
        'base_price': Decimal('250.00'),
        'category_id': category.pk,
        'attribute_values': {'Marque': 'Nova', 'Capacité': 64},
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestProductCreate:

    def test_create_joins_owner_category_and_photos(self, catalog, storage, seller, phone_category):
        product = catalog.create(
            product_data(phone_category, photos=[
                'https://images.test/front.jpg',
                {'local_path': '/tmp/back.jpg', 'is_cover': True},
            ]),
            seller.pk,
        )

        assert product.owner == seller
        assert product.category == phone_category
        assert product.available is True
        assert product.stock == 0
        urls = [p.url for p in product.photos.all()]
        assert urls[0] == 'https://images.test/front.jpg'
        assert urls[1].startswith('https://cdn.test/photos/')
        assert product.cover_photo.url == urls[1]
        # Remote URLs are not uploaded
        assert len(storage.uploads) == 1

    def test_missing_required_attribute(self, catalog, seller, phone_category):
        with pytest.raises(ValidationError):
            catalog.create(
                product_data(phone_category, attribute_values={'Marque': 'Nova'}), seller.pk
            )
        assert Product.objects.count() == 0

    def test_unknown_category(self, catalog, seller, phone_category):
        with pytest.raises(NotFound):
            catalog.create(product_data(phone_category, category_id=987654), seller.pk)

    def test_without_category_stores_attributes_as_given(self, catalog, seller, phone_category):
        product = catalog.create(
            product_data(phone_category, category_id=None, attribute_values={'libre': 'oui'}),
            seller.pk,
        )
        assert product.category is None
        assert product.attribute_values == {'libre': 'oui'}

    def test_failed_upload_leaves_nothing_behind(self, catalog, storage, seller, phone_category):
        with pytest.raises(InternalError):
            catalog.create(
                product_data(phone_category, photos=['good.jpg', 'bad-upload', 'good2.jpg']),
                seller.pk,
            )

        assert Product.objects.count() == 0
        assert ProductPhoto.objects.count() == 0
        assert storage.objects == {}
        # good2.jpg is never attempted
        assert len(storage.uploads) == 1

    def test_negative_price_rejected(self, catalog, seller, phone_category):
        with pytest.raises(ValidationError):
            catalog.create(product_data(phone_category, base_price=Decimal('-1')), seller.pk)


@pytest.mark.django_db
class TestProductSearch:

    @pytest.fixture
    def lamps(self, catalog, seller):
        return [
            catalog.create(
                {'name': f'Lampe {i}', 'base_price': Decimal(10 + i)}, seller.pk
            )
            for i in range(25)
        ]

    def test_second_page(self, catalog, lamps):
        result = catalog.search({'name': 'lampe', 'page': 2, 'limit': 10})

        assert result.total == 25
        assert result.page_count == 3
        assert [p.pk for p in result.items] == [p.pk for p in lamps[10:20]]

    def test_page_past_the_end_is_empty(self, catalog, lamps):
        result = catalog.search({'name': 'lampe', 'page': 9, 'limit': 10})
        assert result.items == []
        assert result.as_dict()['total'] == 25

    def test_price_range_is_inclusive(self, catalog, lamps):
        result = catalog.search({'price_min': '12', 'price_max': '14', 'limit': 50})
        assert [p.name for p in result.items] == ['Lampe 2', 'Lampe 3', 'Lampe 4']

    def test_available_only_applied_when_given(self, catalog, seller, lamps):
        catalog.create({'name': 'Lampe rare', 'base_price': 99, 'available': False}, seller.pk)

        assert catalog.search({'name': 'lampe'}).total == 26
        assert catalog.search({'name': 'lampe', 'available': 'false'}).total == 1
        assert catalog.search({'name': 'lampe', 'available': 'true'}).total == 25

    def test_filter_by_category(self, catalog, product, lamps, phone_category):
        result = catalog.search({'category_id': phone_category.pk})
        assert [p.pk for p in result.items] == [product.pk]


@pytest.mark.django_db
class TestProductUpdate:

    def test_price_change_appends_one_history_entry(self, catalog, product, seller):
        catalog.update(product.pk, {'base_price': Decimal('450.00')}, seller.pk, SELLER)

        entries = list(PriceHistory.objects.filter(price_kind=PriceHistory.PRODUCT, entity_id=product.pk))
        assert len(entries) == 1
        assert entries[0].old_price == Decimal('499.00')
        assert entries[0].new_price == Decimal('450.00')
        assert entries[0].changed_by == seller

    def test_same_price_records_nothing(self, catalog, product, seller):
        catalog.update(product.pk, {'base_price': '499.00', 'stock': 9}, seller.pk, SELLER)
        assert PriceHistory.objects.count() == 0
        assert Product.objects.get(pk=product.pk).stock == 9

    def test_non_owner_forbidden(self, catalog, product, other_seller):
        with pytest.raises(Forbidden):
            catalog.update(product.pk, {'name': 'Volé'}, other_seller.pk, SELLER)

    def test_admin_may_update(self, catalog, product, admin_user):
        updated = catalog.update(product.pk, {'name': 'Corrigé'}, admin_user.pk, ADMIN)
        assert updated.name == 'Corrigé'

    def test_unknown_product(self, catalog, seller):
        with pytest.raises(NotFound):
            catalog.update(123456, {'name': 'x'}, seller.pk, SELLER)

    def test_attributes_are_merged_and_revalidated(self, catalog, product, seller):
        updated = catalog.update(
            product.pk, {'attribute_values': {'Capacité': 256}}, seller.pk, SELLER
        )
        assert updated.attribute_values == {'Marque': 'Nova', 'Capacité': 256}

        with pytest.raises(ValidationError):
            catalog.update(
                product.pk, {'attribute_values': {'Capacité': 'beaucoup'}}, seller.pk, SELLER
            )

    def test_photo_reconciliation(self, catalog, storage, product, seller, django_capture_on_commit_callbacks):
        uploaded = catalog.update(
            product.pk, {'photos_to_add': ['/tmp/new.jpg']}, seller.pk, SELLER
        )
        new_photo = uploaded.photos.get(url__startswith='https://cdn.test/')
        old_photo = uploaded.photos.exclude(pk=new_photo.pk).get()

        with django_capture_on_commit_callbacks(execute=True):
            updated = catalog.update(
                product.pk,
                {'photos_to_delete': [new_photo.pk], 'photos_to_add': ['https://images.test/3.jpg']},
                seller.pk, SELLER,
            )

        assert [p.url for p in updated.photos.all()] == [old_photo.url, 'https://images.test/3.jpg']
        assert storage.deleted == [new_photo.storage_id]

    def test_failure_rolls_back_every_write(self, catalog, storage, product, seller):
        photo = product.photos.get()

        with pytest.raises(InternalError):
            catalog.update(
                product.pk,
                {
                    'base_price': Decimal('1.00'),
                    'photos_to_delete': [photo.pk],
                    'photos_to_add': ['ok.jpg', 'bad-upload.jpg'],
                },
                seller.pk, SELLER,
            )

        product.refresh_from_db()
        assert product.base_price == Decimal('499.00')
        assert product.photos.count() == 1
        assert PriceHistory.objects.count() == 0
        assert storage.objects == {}
        assert storage.deleted == [storage.uploads[0]]

    def test_category_change_revalidates_against_new_schema(self, catalog, product, seller):
        books = CategorySchemaRegistry.create(
            name='Livres', attributes=[{'name': 'Auteur', 'required': True}]
        )
        with pytest.raises(ValidationError):
            catalog.update(product.pk, {'category_id': books.pk}, seller.pk, SELLER)

        updated = catalog.update(
            product.pk,
            {'category_id': books.pk, 'attribute_values': {'Auteur': 'Hugo'}},
            seller.pk, SELLER,
        )
        assert updated.attribute_values == {'Auteur': 'Hugo'}

    def test_renamed_attribute_key_is_dropped(self, catalog, product, seller, phone_category):
        marque = phone_category.attributes.get(name='Marque')
        CategorySchemaRegistry.update(
            phone_category.pk, {'attributes': [{'id': marque.pk, 'name': 'Brand'}]}
        )

        updated = catalog.update(
            product.pk, {'attribute_values': {'Brand': 'Nova'}}, seller.pk, SELLER
        )

        assert updated.attribute_values == {'Brand': 'Nova', 'Capacité': 128}


@pytest.mark.django_db(transaction=True)
class TestProductUpdateUploads:

    def test_photos_uploaded_before_transaction(self, catalog, storage, product, seller, monkeypatch):
        in_transaction = []
        upload = storage.upload

        def recording_upload(source, folder=None):
            in_transaction.append(transaction.get_connection().in_atomic_block)
            return upload(source, folder)

        monkeypatch.setattr(storage, 'upload', recording_upload)

        updated = catalog.update(
            product.pk, {'photos_to_add': ['/tmp/a.jpg', '/tmp/b.jpg']}, seller.pk, SELLER
        )

        assert in_transaction == [False, False]
        assert updated.photos.count() == 3


@pytest.mark.django_db
class TestProductDelete:

    def test_owner_deletes_product_and_photos(self, catalog, storage, seller, phone_category):
        product = catalog.create(
            product_data(phone_category, photos=['/tmp/a.jpg', '/tmp/b.jpg']), seller.pk
        )

        catalog.delete(product.pk, seller.pk, SELLER)

        assert not Product.objects.filter(pk=product.pk).exists()
        assert not ProductPhoto.objects.filter(product_id=product.pk).exists()
        assert storage.objects == {}

    def test_non_owner_forbidden(self, catalog, product, other_seller):
        with pytest.raises(Forbidden):
            catalog.delete(product.pk, other_seller.pk, SELLER)
        assert Product.objects.filter(pk=product.pk).exists()

    def test_price_history_survives_deletion(self, catalog, product, seller):
        catalog.update(product.pk, {'base_price': 10}, seller.pk, SELLER)
        catalog.delete(product.pk, seller.pk, SELLER)

        result = ProductCatalog.price_history(product.pk)
        assert result.total == 1
