"""
Validation of a product's dynamic attribute map against its category schema.

Beyond the required-key check, present values are type-checked against the
declared value type and keys unknown to the schema are rejected. Values are
returned normalized for JSON storage (dates as ISO strings, numbers as int or
float).
"""

import datetime
from decimal import Decimal

from django.utils.dateparse import parse_date, parse_datetime

from apps.catalog.exceptions import NotFound, ValidationError
from apps.catalog.models import AttributeDefinition, Category


def _normalize_string(name, value):
    if not isinstance(value, str):
        raise ValidationError(f"attribute {name} must be a string")
    return value


def _normalize_number(name, value):
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"attribute {name} must be a number")
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def _normalize_boolean(name, value):
    if not isinstance(value, bool):
        raise ValidationError(f"attribute {name} must be a boolean")
    return value


def _normalize_date(name, value):
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, str):
        parsed = parse_datetime(value) or parse_date(value)
        if parsed is not None:
            return parsed.isoformat()
    raise ValidationError(f"attribute {name} must be a date")


NORMALIZERS = {
    AttributeDefinition.STRING: _normalize_string,
    AttributeDefinition.NUMBER: _normalize_number,
    AttributeDefinition.BOOLEAN: _normalize_boolean,
    AttributeDefinition.DATE: _normalize_date,
}


class AttributeValidator:

    @staticmethod
    def load_schema(category_id):
        try:
            category = Category.objects.prefetch_related('attributes').get(pk=category_id)
        except (Category.DoesNotExist, ValueError, TypeError):
            raise NotFound("La catégorie spécifiée n'existe pas")
        return list(category.attributes.all())

    @staticmethod
    def validate(category_id, attribute_values):
        """
        Check attribute_values against the schema of category_id and return
        the normalized mapping. Without a category the map is returned as is.
        """
        if attribute_values is None:
            attribute_values = {}
        if not isinstance(attribute_values, dict):
            raise ValidationError('attribute values must be a mapping')
        if category_id in (None, ''):
            return dict(attribute_values)

        schema = AttributeValidator.load_schema(category_id)
        definitions = {attr.name: attr for attr in schema}

        unknown = sorted(set(attribute_values) - set(definitions))
        if unknown:
            raise ValidationError(f"unknown attribute {unknown[0]}")

        cleaned = {}
        for attr in schema:
            value = attribute_values.get(attr.name)
            if value is None:
                if attr.required:
                    raise ValidationError(f"missing required attribute {attr.name}")
                continue
            cleaned[attr.name] = NORMALIZERS[attr.value_type](attr.name, value)
        return cleaned
