from django.contrib import admin
from .models import Category, MenuItem


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):

    list_display = ("name", "slug", "display_order")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):

    list_display = ("code", "name_fr", "category", "price", "is_available")
    list_filter = ("category", "is_available", "is_popular")
    search_fields = ("code", "name_fr", "name_cn")
