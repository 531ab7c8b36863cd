from django.conf import settings
from django.db import models

from apps.catalog.exceptions import ImmutableRecordError


class PriceHistory(models.Model):
    """
    Append-only audit record of one price transition.
    Written by PriceHistoryRecorder in the same transaction as the price
    change. Holds a plain entity id so the row outlives its subject.
    """
    PRODUCT = 'PRODUCT'
    OFFER = 'OFFER'
    PROMOTION = 'PROMOTION'

    PRICE_KIND_CHOICES = [
        (PRODUCT, 'Prix produit'),
        (OFFER, 'Prix offre'),
        (PROMOTION, 'Prix promotionnel'),
    ]

    entity_id = models.PositiveBigIntegerField(
        db_index=True,
        verbose_name='Identifiant'
    )
    price_kind = models.CharField(
        max_length=10,
        choices=PRICE_KIND_CHOICES,
        verbose_name='Type de prix'
    )
    old_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name='Ancien prix'
    )
    new_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name='Nouveau prix'
    )
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name='Modifié par'
    )
    changed_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Modifié le'
    )
    notes = models.TextField(
        blank=True,
        verbose_name='Remarques'
    )

    class Meta:
        ordering = ['changed_at', 'id']
        indexes = [
            models.Index(fields=['price_kind', 'entity_id'], name='price_history_kind_entity_idx'),
        ]
        verbose_name = 'Historique de prix'
        verbose_name_plural = 'Historique des prix'

    def __str__(self):
        return f"{self.price_kind} #{self.entity_id}: {self.old_price} → {self.new_price}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError('Price history entries are immutable')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError('Price history entries cannot be deleted')

    @property
    def price_difference(self):
        if self.old_price is None or self.new_price is None:
            return None
        return self.new_price - self.old_price

    @property
    def percentage_change(self):
        if self.old_price is None or self.old_price == 0:
            return None
        diff = self.price_difference
        if diff is None:
            return None
        return (diff / self.old_price) * 100
