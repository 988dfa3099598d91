from rest_framework import serializers

from .models import Table
from orders.state import TAKEAWAY_TABLE, is_unassigned

from .occupancy import FREE_TABLE


class TableSerializer(serializers.ModelSerializer):
    status = serializers.SerializerMethodField()
    order_id = serializers.SerializerMethodField()

    class Meta:
        model = Table
        fields = [
            "id",
            "label",
            "x",
            "y",
            "shape",
            "capacity",
            "status",
            "order_id",
        ]

    def validate_label(self, value):
        value = value.strip()
        if value == TAKEAWAY_TABLE or is_unassigned(value):
            raise serializers.ValidationError("This label is reserved")
        return value

    def _occupancy(self, obj):
        occupancy = self.context.get("occupancy") or {}
        return occupancy.get(obj.id, FREE_TABLE)

    def get_status(self, obj):
        return self._occupancy(obj).status

    def get_order_id(self, obj):
        order = self._occupancy(obj).order
        return str(order.id) if order is not None else None


class TableLayoutItemSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False, allow_null=True)
    label = serializers.CharField(max_length=50)
    x = serializers.FloatField(default=0)
    y = serializers.FloatField(default=0)
    shape = serializers.ChoiceField(choices=Table.SHAPE_CHOICES, default="RECT")
    capacity = serializers.IntegerField(min_value=1, default=4)
