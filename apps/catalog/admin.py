from django import forms
from django.contrib import admin
from django.db import transaction
from django.utils.html import format_html
from import_export import resources, fields
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget
from adminsortable2.admin import SortableAdminBase, SortableInlineAdminMixin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    AttributeDefinition,
    Category,
    Offer,
    PriceHistory,
    Product,
    ProductPhoto,
    Promotion,
)
from .exceptions import NotFound, ValidationError
from .services import AttributeValidator, PriceHistoryRecorder, PricingEngine, ProductCatalog


# =============================================================================
# Import/Export Resources
# =============================================================================

class ProductResource(resources.ModelResource):
    """Resource for exporting products."""

    category_name = fields.Field(
        column_name='category',
        attribute='category',
        widget=ForeignKeyWidget(Category, 'name')
    )

    class Meta:
        model = Product
        fields = (
            'id', 'name', 'description', 'base_price', 'stock',
            'available', 'category_name', 'attribute_values', 'owner'
        )
        export_order = fields


class OfferResource(resources.ModelResource):

    product_name = fields.Field(
        column_name='product',
        attribute='product',
        widget=ForeignKeyWidget(Product, 'name')
    )

    class Meta:
        model = Offer
        fields = ('id', 'product_name', 'owner', 'price', 'stock', 'expiration_date')


# =============================================================================
# Forms
# =============================================================================

class ProductAdminForm(forms.ModelForm):
    """Checks attribute_values against the category schema before saving."""

    class Meta:
        model = Product
        fields = '__all__'

    def clean(self):
        cleaned_data = super().clean()
        if 'attribute_values' not in cleaned_data:
            return cleaned_data
        category = cleaned_data.get('category')
        try:
            cleaned_data['attribute_values'] = AttributeValidator.validate(
                category.pk if category else None, cleaned_data['attribute_values']
            )
        except (ValidationError, NotFound) as e:
            detail = e.detail if isinstance(e.detail, list) else [e.detail]
            self.add_error('attribute_values', [str(message) for message in detail])
        return cleaned_data


# =============================================================================
# Inlines
# =============================================================================

class AttributeDefinitionInline(SortableInlineAdminMixin, admin.TabularInline):
    model = AttributeDefinition
    extra = 1
    fields = ['name', 'value_type', 'required', 'display_order']


class ProductPhotoInline(admin.TabularInline):
    model = ProductPhoto
    extra = 0
    fields = ['url', 'is_cover', 'storage_id', 'photo_preview']
    readonly_fields = ['storage_id', 'photo_preview']

    def photo_preview(self, obj):
        if obj.url:
            return format_html(
                '<img src="{}" style="max-height: 50px; max-width: 100px;" />',
                obj.url
            )
        return '-'
    photo_preview.short_description = 'Aperçu'


class PromotionInline(admin.TabularInline):
    model = Promotion
    extra = 0
    fields = ['discount_percent', 'computed_price', 'start_date', 'end_date']
    readonly_fields = fields
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Category)
class CategoryAdmin(SortableAdminBase, admin.ModelAdmin):
    list_display = ['name', 'category_type', 'attribute_count', 'product_count', 'is_active', 'created_at']
    list_filter = ['is_active', 'category_type']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [AttributeDefinitionInline]

    def attribute_count(self, obj):
        return obj.attributes.count()
    attribute_count.short_description = 'Attributs'

    def product_count(self, obj):
        return obj.products.count()
    product_count.short_description = 'Produits'


@admin.register(Product)
class ProductAdmin(ImportExportModelAdmin, SimpleHistoryAdmin):
    form = ProductAdminForm
    resource_class = ProductResource
    list_display = ['name', 'category', 'owner', 'base_price', 'stock', 'available', 'photo_count', 'created_at']
    list_filter = ['available', 'category', 'created_at']
    search_fields = ['name', 'description', 'owner__username']
    autocomplete_fields = ['category']
    raw_id_fields = ['owner']
    readonly_fields = ['photo_count', 'created_at', 'updated_at']
    inlines = [ProductPhotoInline]
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('name', 'description', 'owner', 'category', 'attribute_values')
        }),
        ('Prix et stock', {
            'fields': ('base_price', 'stock', 'available')
        }),
        ('Informations', {
            'fields': ('photo_count', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['make_available', 'make_unavailable']

    def save_model(self, request, obj, form, change):
        if change and 'base_price' in form.changed_data:
            PriceHistoryRecorder.record_transition(
                obj.pk, form.initial.get('base_price'), obj.base_price,
                PriceHistory.PRODUCT, request.user, notes="Modifié depuis l'administration",
            )
        super().save_model(request, obj, form, change)

    def get_catalog(self):
        return ProductCatalog()

    def _delete_stored_after_commit(self, photos):
        catalog = self.get_catalog()
        for photo in photos:
            if photo.storage_id:
                transaction.on_commit(
                    lambda public_id=photo.storage_id: catalog.delete_stored(public_id)
                )

    def save_formset(self, request, form, formset, change):
        super().save_formset(request, form, formset, change)
        if formset.model is ProductPhoto:
            self._delete_stored_after_commit(formset.deleted_objects)

    def delete_model(self, request, obj):
        self._delete_stored_after_commit(obj.photos.all())
        super().delete_model(request, obj)

    def delete_queryset(self, request, queryset):
        self._delete_stored_after_commit(ProductPhoto.objects.filter(product__in=queryset))
        super().delete_queryset(request, queryset)

    @admin.action(description='Rendre disponibles les produits sélectionnés')
    def make_available(self, request, queryset):
        count = queryset.update(available=True)
        self.message_user(request, f'{count} produits rendus disponibles.')

    @admin.action(description='Rendre indisponibles les produits sélectionnés')
    def make_unavailable(self, request, queryset):
        count = queryset.update(available=False)
        self.message_user(request, f'{count} produits rendus indisponibles.')


@admin.register(Offer)
class OfferAdmin(ImportExportModelAdmin, SimpleHistoryAdmin):
    resource_class = OfferResource
    list_display = ['id', 'product', 'owner', 'price', 'stock', 'expiration_date', 'expired_display']
    list_filter = ['expiration_date', 'created_at']
    search_fields = ['product__name', 'owner__username']
    raw_id_fields = ['product', 'owner']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [PromotionInline]

    def expired_display(self, obj):
        if obj.is_expired:
            return format_html('<span style="color: red;">{}</span>', 'Expirée')
        return format_html('<span style="color: green;">{}</span>', 'Active')
    expired_display.short_description = 'Statut'

    def save_model(self, request, obj, form, change):
        price_edited = change and 'price' in form.changed_data
        if price_edited:
            PriceHistoryRecorder.record_transition(
                obj.pk, form.initial.get('price'), obj.price,
                PriceHistory.OFFER, request.user, notes="Modifié depuis l'administration",
            )
        super().save_model(request, obj, form, change)
        if price_edited:
            PricingEngine.reprice_offer_promotions(obj, request.user)


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ['id', 'offer', 'discount_percent', 'computed_price', 'start_date', 'end_date', 'is_running']
    list_filter = ['start_date', 'end_date']
    search_fields = ['offer__product__name']
    raw_id_fields = ['offer']
    readonly_fields = ['computed_price', 'created_at', 'updated_at']

    def is_running(self, obj):
        return obj.is_running
    is_running.boolean = True
    is_running.short_description = 'En cours'

    def save_model(self, request, obj, form, change):
        PricingEngine.reprice_promotion(
            obj, obj.offer.price, request.user, notes="Modifié depuis l'administration"
        )
        super().save_model(request, obj, form, change)


@admin.register(PriceHistory)
class PriceHistoryAdmin(admin.ModelAdmin):
    list_display = [
        'entity_id', 'price_kind', 'old_price', 'new_price',
        'price_diff_display', 'changed_by', 'changed_at'
    ]
    list_filter = ['price_kind', 'changed_at']
    search_fields = ['entity_id', 'notes']
    readonly_fields = [
        'entity_id', 'price_kind', 'old_price', 'new_price',
        'changed_by', 'changed_at', 'price_difference', 'percentage_change', 'notes'
    ]
    date_hierarchy = 'changed_at'

    def price_diff_display(self, obj):
        diff = obj.price_difference
        if diff is None:
            return '-'
        if diff > 0:
            return format_html('<span style="color: green;">+{} €</span>', f'{diff:.2f}')
        elif diff < 0:
            return format_html('<span style="color: red;">{} €</span>', f'{diff:.2f}')
        return '0.00 €'
    price_diff_display.short_description = 'Différence'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================================
# Admin Site Configuration
# =============================================================================

admin.site.site_header = 'Administration du catalogue'
admin.site.site_title = 'Catalogue'
admin.site.index_title = "Panneau d'administration"
