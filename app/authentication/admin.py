"""
Django admin configuration for staff accounts.

Each account shows the stores it can act for, since store membership is
what allows issuing delivery credentials and reading audit trails.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import User
from stores.models import StoreMembership


class StoreAccessInline(admin.TabularInline):
    model = StoreMembership
    fk_name = "user"
    extra = 0
    raw_id_fields = ("store",)
    verbose_name = "store access"
    verbose_name_plural = "store access"


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("email", "full_name", "store_count", "is_active", "is_staff", "last_login")
    list_filter = ("is_active", "is_staff", "is_superuser")
    search_fields = ("email", "full_name")
    ordering = ("-date_joined",)
    inlines = [StoreAccessInline]

    fieldsets = (
        (None, {"fields": ("email", "password", "full_name")}),
        ("Access", {"fields": ("is_active", "is_staff", "is_superuser", "groups")}),
        ("Activity", {"fields": ("date_joined", "last_login")}),
    )
    readonly_fields = ("date_joined", "last_login")

    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "full_name", "password1", "password2")}),
    )

    @admin.display(description="Stores")
    def store_count(self, obj):
        return obj.store_memberships.count()
