from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class Promotion(models.Model):
    """
    Percentage discount applied to an offer.
    computed_price is derived from the offer price; it is stored for display
    and history only and always recomputed from the live offer price.
    """
    offer = models.ForeignKey(
        'catalog.Offer',
        on_delete=models.CASCADE,
        related_name='promotions',
        verbose_name='Offre'
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal('0')),
            MaxValueValidator(Decimal('100')),
        ],
        verbose_name='Pourcentage'
    )
    computed_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        verbose_name='Prix promotionnel'
    )
    start_date = models.DateTimeField(verbose_name='Date de début')
    end_date = models.DateTimeField(verbose_name='Date de fin')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        verbose_name = 'Promotion'
        verbose_name_plural = 'Promotions'

    def __str__(self):
        return f"-{self.discount_percent}% sur {self.offer}"

    @property
    def is_running(self):
        return self.start_date <= timezone.now() <= self.end_date
