from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):

    list_display = ("id", "order_type", "table_number", "status", "total_amount", "created_at")
    list_filter = ("status", "order_type")
    readonly_fields = ("version", "created_at", "updated_at")

    inlines = [OrderItemInline]
