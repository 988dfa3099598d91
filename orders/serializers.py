from rest_framework import serializers

from products.models import MenuItem
from .models import Order, OrderItem
from .utils import format_order_ref
from . import state


# -------------------------------
# MENU ITEM (embedded)
# -------------------------------

class OrderMenuItemSerializer(serializers.ModelSerializer):

    class Meta:
        model = MenuItem
        fields = ["id", "code", "name_fr", "name_cn", "price"]


# -------------------------------
# ORDER ITEM SERIALIZER
# -------------------------------

class OrderItemSerializer(serializers.ModelSerializer):

    menu_item = OrderMenuItemSerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "menu_item",
            "quantity",
            "unit_price",
            "notes",
            "is_prepared",
        ]
        read_only_fields = fields


# -------------------------------
# ORDER SERIALIZER
# -------------------------------

class OrderSerializer(serializers.ModelSerializer):
    """Complete denormalised order, the payload pushed to realtime subscribers."""

    items = OrderItemSerializer(many=True, read_only=True)
    order_ref = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_ref",
            "order_type",
            "table_number",
            "status",
            "payment_method",
            "number_of_people",
            "mains_started",
            "total_amount",
            "version",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_order_ref(self, obj):
        return format_order_ref(obj.id)


# -------------------------------
# CREATE INPUT
# -------------------------------

class OrderItemInputSerializer(serializers.Serializer):

    menu_item = serializers.PrimaryKeyRelatedField(
        queryset=MenuItem.objects.filter(is_available=True)
    )

    # Zero quantities are cart leftovers and get dropped, never stored.
    quantity = serializers.IntegerField(min_value=0)

    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True
    )


class OrderCreateSerializer(serializers.Serializer):

    order_type = serializers.ChoiceField(choices=state.ORDER_TYPE_CHOICES)

    payment_method = serializers.ChoiceField(
        choices=Order.PAYMENT_METHODS,
        required=False,
        allow_null=True
    )

    table_number = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True
    )

    number_of_people = serializers.IntegerField(min_value=1, default=1)

    items = OrderItemInputSerializer(many=True)

    def validate_items(self, items):
        items = [item for item in items if item["quantity"] > 0]
        if not items:
            raise serializers.ValidationError("Cannot submit an empty order")
        return items


# -------------------------------
# MUTATION INPUTS
# -------------------------------

class OrderStatusSerializer(serializers.Serializer):

    status = serializers.ChoiceField(choices=state.STATUS_CHOICES)
    expected_version = serializers.IntegerField(min_value=1, required=False)


class NumberOfPeopleSerializer(serializers.Serializer):

    number_of_people = serializers.IntegerField(min_value=1)
    expected_version = serializers.IntegerField(min_value=1, required=False)


class ItemPreparedSerializer(serializers.Serializer):

    is_prepared = serializers.BooleanField()


class AssignTableSerializer(serializers.Serializer):

    table_id = serializers.UUIDField()
    expected_version = serializers.IntegerField(min_value=1, required=False)


class UndoSerializer(serializers.Serializer):

    token = serializers.CharField()
