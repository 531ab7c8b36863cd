"""OfferLedger tests."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.catalog.exceptions import Forbidden, NotFound, ValidationError
from apps.catalog.models import Offer, PriceHistory, Promotion
from apps.catalog.services import OfferLedger, PromotionEngine


@pytest.mark.django_db
class TestOfferCreate:

    def test_view_is_denormalized(self, offer, product, seller):
        view = OfferLedger.view(offer)

        assert view['product_id'] == product.pk
        assert view['product_name'] == 'Smartphone X12'
        assert view['owner_id'] == seller.pk
        assert view['owner_name'] == 'Alice Martin'
        assert view['price'] == Decimal('100.00')
        assert view['promotion_id'] is None

    def test_unknown_product(self, seller):
        with pytest.raises(NotFound):
            OfferLedger.create({'product_id': 999, 'price': 10}, seller.pk)

    @pytest.mark.parametrize('payload', [
        {'price': 0},
        {'price': -5},
        {'price': 10, 'stock': -1},
        {'stock': 3},
    ])
    def test_invalid_payload(self, product, seller, payload):
        with pytest.raises(ValidationError):
            OfferLedger.create(dict(payload, product_id=product.pk), seller.pk)
        assert Offer.objects.count() == 0


@pytest.mark.django_db
class TestOfferList:

    @pytest.fixture
    def offers(self, product, seller, other_seller):
        return [
            OfferLedger.create({'product_id': product.pk, 'price': '30'}, seller.pk),
            OfferLedger.create({'product_id': product.pk, 'price': '10'}, other_seller.pk),
            OfferLedger.create({'product_id': product.pk, 'price': '20'}, seller.pk),
        ]

    def test_keyword_matches_owner_name(self, offers, other_seller):
        result = OfferLedger.list({'keyword': 'bruno'})
        assert [o.owner_id for o in result.items] == [other_seller.pk]

    def test_keyword_matches_owner_full_name(self, offers, seller):
        result = OfferLedger.list({'keyword': 'alice martin'})
        assert result.total == 2
        assert {o.owner_id for o in result.items} == {seller.pk}

    def test_keyword_matches_product_name(self, offers):
        assert OfferLedger.list({'keyword': 'x12'}).total == 3

    def test_price_range_and_sorting(self, offers):
        result = OfferLedger.list({'price_min': '10', 'price_max': '20', 'sort_by': 'price', 'order': 'desc'})
        assert [o.price for o in result.items] == [Decimal('20.00'), Decimal('10.00')]

    def test_open_upper_bound(self, offers):
        result = OfferLedger.list({'price_min': '20'})
        assert result.total == 2

    def test_unknown_sort_field(self, offers):
        with pytest.raises(ValidationError):
            OfferLedger.list({'sort_by': 'owner__password'})


@pytest.mark.django_db
class TestOfferUpdate:

    def test_owner_changes_price_and_promotions_follow(self, offer, seller, promotion_period):
        start, end = promotion_period
        promotion = PromotionEngine.create(
            {'offer_id': offer.pk, 'discount_percent': '25', 'start_date': start, 'end_date': end},
            seller.pk,
        )

        updated = OfferLedger.update(offer.pk, {'price': '200'}, seller.pk)

        assert updated.price == Decimal('200.00')
        promotion.refresh_from_db()
        assert promotion.computed_price == Decimal('150.00')

        offer_entry = PriceHistory.objects.get(price_kind=PriceHistory.OFFER)
        assert (offer_entry.entity_id, offer_entry.old_price, offer_entry.new_price) == (
            offer.pk, Decimal('100.00'), Decimal('200.00')
        )
        promo_entry = PriceHistory.objects.get(price_kind=PriceHistory.PROMOTION)
        assert (promo_entry.entity_id, promo_entry.old_price, promo_entry.new_price) == (
            promotion.pk, Decimal('75.00'), Decimal('150.00')
        )
        assert OfferLedger.view(updated)['promotion_id'] == promotion.pk

    def test_stock_only_update_records_nothing(self, offer, seller):
        updated = OfferLedger.update(offer.pk, {'stock': 8}, seller.pk)
        assert updated.stock == 8
        assert PriceHistory.objects.count() == 0

    def test_expiration_date(self, offer, seller):
        when = timezone.now() + timedelta(days=3)
        updated = OfferLedger.update(offer.pk, {'expiration_date': when.isoformat()}, seller.pk)
        assert updated.expiration_date == when
        assert updated.is_expired is False

    def test_non_owner_forbidden(self, offer, other_seller):
        with pytest.raises(Forbidden):
            OfferLedger.update(offer.pk, {'price': 1}, other_seller.pk)
        assert Offer.objects.get(pk=offer.pk).price == Decimal('100.00')

    def test_admin_has_no_override(self, offer, admin_user):
        with pytest.raises(Forbidden):
            OfferLedger.update(offer.pk, {'price': 1}, admin_user.pk)

    def test_invalid_price_rolls_back(self, offer, seller):
        with pytest.raises(ValidationError):
            OfferLedger.update(offer.pk, {'stock': 1, 'price': -3}, seller.pk)
        assert Offer.objects.get(pk=offer.pk).stock == 3


@pytest.mark.django_db
class TestOfferDelete:

    def test_owner_deletes_offer_and_its_promotions(self, offer, seller, promotion_period):
        start, end = promotion_period
        PromotionEngine.create(
            {'offer_id': offer.pk, 'discount_percent': 10, 'start_date': start, 'end_date': end},
            seller.pk,
        )

        result = OfferLedger.delete(offer.pk, seller.pk)

        assert result['offer_id'] == offer.pk
        assert not Offer.objects.filter(pk=offer.pk).exists()
        assert Promotion.objects.count() == 0

    def test_non_owner_forbidden(self, offer, other_seller):
        with pytest.raises(Forbidden):
            OfferLedger.delete(offer.pk, other_seller.pk)

    def test_unknown_offer(self, seller):
        with pytest.raises(NotFound):
            OfferLedger.delete(5555, seller.pk)
