from decimal import Decimal

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from simple_history.models import HistoricalRecords


class Product(models.Model):
    """
    A seller's product.
    Dynamic attributes live in attribute_values and are checked against the
    category schema by AttributeValidator before every write.
    """
    name = models.CharField(
        max_length=255,
        verbose_name='Nom'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Description'
    )
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Prix initial'
    )
    stock = models.PositiveIntegerField(
        default=0,
        verbose_name='Stock'
    )
    available = models.BooleanField(
        default=True,
        verbose_name='Disponible'
    )
    category = models.ForeignKey(
        'catalog.Category',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='products',
        verbose_name='Catégorie'
    )
    attribute_values = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        verbose_name="Valeurs d'attributs"
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='products',
        verbose_name='Vendeur'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Créé le'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Modifié le'
    )

    # History tracking
    history = HistoricalRecords()

    class Meta:
        ordering = ['id']
        verbose_name = 'Produit'
        verbose_name_plural = 'Produits'

    def __str__(self):
        return self.name

    @property
    def cover_photo(self):
        """The photo flagged as cover, else the first one added."""
        photos = list(self.photos.all())
        for photo in photos:
            if photo.is_cover:
                return photo
        return photos[0] if photos else None

    @property
    def photo_count(self):
        return self.photos.count()


class ProductPhoto(models.Model):
    """Reference to a photo hosted by the storage collaborator."""
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='photos',
        verbose_name='Produit'
    )
    url = models.CharField(
        max_length=500,
        verbose_name='URL'
    )
    is_cover = models.BooleanField(
        default=False,
        verbose_name='Couverture'
    )
    storage_id = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Identifiant de stockage'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        verbose_name = 'Photo'
        verbose_name_plural = 'Photos'

    def __str__(self):
        return f"{self.product.name} - {self.url}"
