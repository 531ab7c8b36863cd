import math
from dataclasses import dataclass, field
from typing import Any, List

from django.conf import settings

from apps.catalog.exceptions import ValidationError


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def page_count(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def as_dict(self, serialize=None):
        data = [serialize(item) for item in self.items] if serialize else list(self.items)
        return {
            'total': self.total,
            'page': self.page,
            'pageCount': self.page_count,
            'data': data,
        }


def clean_page_params(page=None, limit=None):
    """Coerce page/limit to positive ints, capping limit at the configured max."""
    default_limit = getattr(settings, 'CATALOG_DEFAULT_PAGE_SIZE', 10)
    max_limit = getattr(settings, 'CATALOG_MAX_PAGE_SIZE', 100)
    try:
        page = int(page) if page not in (None, '') else 1
        limit = int(limit) if limit not in (None, '') else default_limit
    except (TypeError, ValueError):
        raise ValidationError('Les paramètres page et limit doivent être des nombres.')
    return max(page, 1), min(max(limit, 1), max_limit)


def paginate(queryset, page=None, limit=None) -> Page:
    """Slice an ordered queryset; pages past the end are empty."""
    page, limit = clean_page_params(page, limit)
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])
    return Page(items=items, total=total, page=page, limit=limit)
