from django.core.validators import MinLengthValidator
from django.db import models


class Category(models.Model):
    """
    Administrator-defined product category.
    Carries the attribute schema (see AttributeDefinition) that every
    product filed under it must satisfy.
    """
    NAME_MIN_LENGTH = 2
    NAME_MAX_LENGTH = 50

    name = models.CharField(
        max_length=NAME_MAX_LENGTH,
        validators=[MinLengthValidator(NAME_MIN_LENGTH)],
        verbose_name='Nom'
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name='Active'
    )
    category_type = models.CharField(
        max_length=100,
        blank=True,
        verbose_name='Type de catégorie'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'id']
        verbose_name = 'Catégorie'
        verbose_name_plural = 'Catégories'

    def __str__(self):
        return self.name

    @property
    def schema(self):
        """Ordered attribute definitions of this category."""
        return list(self.attributes.all())

    @property
    def required_attribute_names(self):
        return [attr.name for attr in self.attributes.all() if attr.required]
