from django.db import models


class AttributeDefinition(models.Model):
    """
    One entry of a category's attribute schema.
    Examples: Couleur (string, required), Poids (number), Date de péremption (date)

    The id is stable once products reference the attribute; name, value type
    and the required flag may be edited in place.
    """
    STRING = 'string'
    NUMBER = 'number'
    BOOLEAN = 'boolean'
    DATE = 'date'

    VALUE_TYPE_CHOICES = [
        (STRING, 'Texte'),
        (NUMBER, 'Nombre'),
        (BOOLEAN, 'Booléen'),
        (DATE, 'Date'),
    ]

    category = models.ForeignKey(
        'catalog.Category',
        on_delete=models.PROTECT,
        related_name='attributes',
        verbose_name='Catégorie'
    )
    name = models.CharField(
        max_length=100,
        verbose_name='Nom'
    )
    value_type = models.CharField(
        max_length=20,
        choices=VALUE_TYPE_CHOICES,
        default=STRING,
        verbose_name='Type de valeur'
    )
    required = models.BooleanField(
        default=False,
        verbose_name='Obligatoire'
    )
    display_order = models.PositiveIntegerField(
        default=0,
        verbose_name="Ordre d'affichage"
    )

    class Meta:
        ordering = ['display_order', 'id']
        unique_together = ['category', 'name']
        verbose_name = 'Attribut'
        verbose_name_plural = 'Attributs'

    def __str__(self):
        flag = '*' if self.required else ''
        return f"{self.name}{flag} ({self.get_value_type_display()})"

    @classmethod
    def value_types(cls):
        return [choice for choice, _ in cls.VALUE_TYPE_CHOICES]
