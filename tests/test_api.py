"""REST API tests."""

from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.catalog.models import PriceHistory, Product
from apps.catalog.services import OfferLedger


@pytest.fixture
def seller_client(api_client, seller):
    api_client.force_authenticate(user=seller)
    return api_client


@pytest.fixture
def admin_client(api_client, admin_user):
    api_client.force_authenticate(user=admin_user)
    return api_client


@pytest.mark.django_db
class TestCategoryApi:

    def test_public_listing(self, api_client, phone_category):
        response = api_client.get('/api/categories/', {'nomCategorie': 'phone'})

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {'total', 'page', 'pageCount', 'data'}
        assert body['data'][0]['name'] == 'Téléphones'
        assert len(body['data'][0]['attributes']) == 4

    def test_seller_cannot_create(self, seller_client):
        response = seller_client.post('/api/categories/', {'name': 'Jeux'}, format='json')
        assert response.status_code == 403

    def test_admin_creates_and_deletes(self, admin_client):
        response = admin_client.post(
            '/api/categories/',
            {'name': 'Jeux', 'attributes': [{'name': 'Âge minimum', 'value_type': 'number'}]},
            format='json',
        )
        assert response.status_code == 201
        category_id = response.json()['id']

        assert admin_client.delete(f'/api/categories/{category_id}/').status_code == 204
        assert admin_client.get(f'/api/categories/{category_id}/').status_code == 404

    def test_short_name_is_bad_request(self, admin_client):
        response = admin_client.post('/api/categories/', {'name': 'J'}, format='json')
        assert response.status_code == 400

    def test_delete_in_use_is_conflict(self, admin_client, product, phone_category):
        response = admin_client.delete(f'/api/categories/{phone_category.pk}/')
        assert response.status_code == 409

    def test_statistics_admin_only(self, api_client, admin_user, product):
        assert api_client.get('/api/categories/statistics/').status_code in (401, 403)

        api_client.force_authenticate(user=admin_user)
        response = api_client.get('/api/categories/statistics/')
        assert response.status_code == 200
        assert response.json()['data'][0]['product_count'] == 1


@pytest.mark.django_db
class TestProductApi:

    def test_create_json(self, seller_client, seller, phone_category):
        response = seller_client.post('/api/products/', {
            'name': 'Tablette',
            'base_price': '320.00',
            'category_id': phone_category.pk,
            'attribute_values': {'Marque': 'Nova', 'Capacité': 64},
            'photos': ['https://images.test/tablette.jpg'],
        }, format='json')

        assert response.status_code == 201
        body = response.json()
        assert body['owner_id'] == seller.pk
        assert body['cover_photo'] == 'https://images.test/tablette.jpg'
        assert body['available'] is True

    def test_create_multipart_uploads_files(self, seller_client, settings, tmp_path):
        settings.MEDIA_ROOT = str(tmp_path)
        photo = SimpleUploadedFile('vase.jpg', b'jpeg-bytes', content_type='image/jpeg')

        response = seller_client.post('/api/products/', {
            'name': 'Vase',
            'base_price': '25.00',
            'photos': [photo],
        }, format='multipart')

        assert response.status_code == 201
        body = response.json()
        assert body['available'] is True
        assert len(body['photos']) == 1
        assert body['photos'][0]['url'].endswith('.jpg')

    def test_missing_required_attribute_is_bad_request(self, seller_client, phone_category):
        response = seller_client.post('/api/products/', {
            'name': 'Tablette',
            'base_price': '320.00',
            'category_id': phone_category.pk,
            'attribute_values': {'Marque': 'Nova'},
        }, format='json')

        assert response.status_code == 400
        assert Product.objects.count() == 0

    def test_anonymous_cannot_create(self, api_client):
        response = api_client.post('/api/products/', {'name': 'x', 'base_price': 1}, format='json')
        assert response.status_code in (401, 403)

    def test_search_with_query_params(self, api_client, product):
        response = api_client.get('/api/products/search/', {
            'nom': 'x12', 'prixMin': '400', 'prixMax': '500', 'disponibilite': 'true',
        })

        assert response.status_code == 200
        assert [p['id'] for p in response.json()['data']] == [product.pk]

        response = api_client.get('/api/products/search/', {'prixMax': '100'})
        assert response.json()['total'] == 0

    def test_patch_price_then_read_history(self, seller_client, product):
        response = seller_client.patch(
            f'/api/products/{product.pk}/', {'base_price': '450.00'}, format='json'
        )
        assert response.status_code == 200

        response = seller_client.get(f'/api/products/{product.pk}/historique-prix/')
        body = response.json()
        assert body['total'] == 1
        assert Decimal(body['data'][0]['old_price']) == Decimal('499.00')
        assert Decimal(body['data'][0]['new_price']) == Decimal('450.00')

    def test_other_seller_cannot_patch(self, api_client, other_seller, product):
        api_client.force_authenticate(user=other_seller)
        response = api_client.patch(f'/api/products/{product.pk}/', {'name': 'x'}, format='json')
        assert response.status_code == 403

    def test_unknown_product(self, api_client):
        assert api_client.get('/api/products/424242/').status_code == 404


@pytest.mark.django_db
class TestOfferAndPromotionApi:

    def test_offer_lifecycle(self, seller_client, product):
        response = seller_client.post(
            '/api/offers/', {'product_id': product.pk, 'price': '90.00', 'stock': 4}, format='json'
        )
        assert response.status_code == 201
        offer_id = response.json()['id']
        assert response.json()['owner_name'] == 'Alice Martin'

        response = seller_client.get('/api/offers/', {'keyword': 'alice', 'sortBy': 'price', 'order': 'desc'})
        assert [o['id'] for o in response.json()['data']] == [offer_id]

        response = seller_client.patch(f'/api/offers/{offer_id}/', {'price': '95.00'}, format='json')
        assert response.status_code == 200
        assert PriceHistory.objects.filter(price_kind=PriceHistory.OFFER, entity_id=offer_id).count() == 1

        response = seller_client.delete(f'/api/offers/{offer_id}/')
        assert response.status_code == 200
        assert response.json()['offer_id'] == offer_id

    def test_other_seller_cannot_update_offer(self, api_client, other_seller, offer):
        api_client.force_authenticate(user=other_seller)
        response = api_client.patch(f'/api/offers/{offer.pk}/', {'price': '1.00'}, format='json')
        assert response.status_code == 403

    def test_promotion_create_and_list(self, seller_client, offer, promotion_period):
        start, end = promotion_period
        response = seller_client.post('/api/promotions/', {
            'offer_id': offer.pk,
            'discount_percent': '20.00',
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
        }, format='json')

        assert response.status_code == 201
        body = response.json()
        assert Decimal(body['computed_price']) == Decimal('80.00')
        assert body['offer']['cover_photo'] == 'https://images.test/x12.jpg'

        listing = seller_client.get('/api/promotions/').json()
        assert [p['id'] for p in listing] == [body['id']]

    def test_price_history_endpoint(self, api_client, seller, offer):
        OfferLedger.update(offer.pk, {'price': '110'}, seller.pk)

        response = api_client.get('/api/price-history/', {'entityId': offer.pk, 'priceKind': 'OFFER'})

        assert response.status_code == 200
        body = response.json()
        assert body['total'] == 1
        assert body['data'][0]['changed_by_username'] == 'alice'
