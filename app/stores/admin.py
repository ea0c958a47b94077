"""
Django admin configuration for store models.
"""

from django.contrib import admin

from stores.models import Order, ReturnRequest, Store, StoreMembership


class StoreMembershipInline(admin.TabularInline):
    model = StoreMembership
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "owner", "created_at")
    search_fields = ("name", "slug", "owner__email")
    raw_id_fields = ("owner",)
    inlines = [StoreMembershipInline]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "store", "status", "total", "currency", "created_at")
    list_filter = ("status",)
    search_fields = ("order_number", "shipping_phone")
    raw_id_fields = ("store", "buyer")


@admin.register(ReturnRequest)
class ReturnRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "store", "status", "is_open", "created_at")
    list_filter = ("status",)
    raw_id_fields = ("order", "store")
