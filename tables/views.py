from rest_framework import generics
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminOrStaff, IsWaiter
from orders.exceptions import OrderingError
from orders.services import fetch_orders, persistence_guard
from orders.utils import ordering_error_response
from orders import state

from .models import Table
from .occupancy import resolve
from .serializers import TableLayoutItemSerializer, TableSerializer
from .services import save_table_layout


def floor_occupancy(tables):
    active = fetch_orders(order_type=state.DINE_IN).exclude(status=state.PAID)
    return resolve(tables, active)


class TableListView(generics.ListAPIView):

    serializer_class = TableSerializer
    permission_classes = [IsAdminOrStaff]

    def get_queryset(self):
        return Table.objects.all().order_by("label")

    def list(self, request, *args, **kwargs):
        tables = list(self.get_queryset())
        serializer = self.get_serializer(
            tables,
            many=True,
            context={**self.get_serializer_context(), "occupancy": floor_occupancy(tables)},
        )
        return Response(serializer.data)


class TableCreateView(generics.CreateAPIView):

    queryset = Table.objects.all()
    serializer_class = TableSerializer
    permission_classes = [IsWaiter]


class TableLayoutView(APIView):
    """Save the edited floor plan in one go."""

    permission_classes = [IsWaiter]

    def put(self, request):
        data = request.data.get("tables") if isinstance(request.data, dict) else request.data
        serializer = TableLayoutItemSerializer(data=data, many=True)
        serializer.is_valid(raise_exception=True)

        try:
            with persistence_guard():
                tables = save_table_layout(serializer.validated_data, user=request.user)
        except OrderingError as exc:
            return ordering_error_response(exc)

        serializer = TableSerializer(tables, many=True, context={"occupancy": floor_occupancy(tables)})
        return Response({"message": "Floor plan saved", "tables": serializer.data}, status=200)
