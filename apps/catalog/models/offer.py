from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from simple_history.models import HistoricalRecords


class Offer(models.Model):
    """
    A seller's priced, stocked listing of a product.
    The owner is fixed at creation; only the owner may change or remove it.
    """
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.CASCADE,
        related_name='offers',
        verbose_name='Produit'
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='offers',
        verbose_name='Vendeur'
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        verbose_name='Prix'
    )
    stock = models.PositiveIntegerField(
        default=0,
        verbose_name='Stock'
    )
    expiration_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Date d'expiration"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # History tracking
    history = HistoricalRecords()

    class Meta:
        ordering = ['id']
        verbose_name = 'Offre'
        verbose_name_plural = 'Offres'

    def __str__(self):
        return f"{self.product.name} @ {self.price}"

    @property
    def is_expired(self):
        return bool(self.expiration_date and self.expiration_date <= timezone.now())

    @property
    def current_promotion(self):
        """The running promotion, else the most recently created one."""
        now = timezone.now()
        promotions = list(self.promotions.all())
        for promotion in reversed(promotions):
            if promotion.start_date <= now <= promotion.end_date:
                return promotion
        return promotions[-1] if promotions else None

    @property
    def promotion_id(self):
        promotion = self.current_promotion
        return promotion.id if promotion else None
