from django.db.models import Q
from rest_framework import generics, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminOrStaff, IsKitchen, IsWaiter, role_of

from .assignment import UndoSnapshot, assign_order_to_table, revert_assignment
from .exceptions import OrderingError
from .serializers import (
    AssignTableSerializer,
    ItemPreparedSerializer,
    NumberOfPeopleSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusSerializer,
    UndoSerializer,
)
from .services import (
    change_status,
    create_order,
    fetch_active_order,
    fetch_order,
    fetch_orders,
    persistence_guard,
    set_number_of_people,
    start_mains,
    update_order_item_prepared,
)
from .utils import error_response, guest_session_key, ordering_error_response
from . import state


def apply_order_filters(request, queryset):
    """
    Supported query params:
    - status=PENDING,VALIDATED,...
    - type=DINE_IN|TAKEAWAY
    - kind=unassigned (dine-in orders still waiting for a table)
    """
    status_param = (request.GET.get("status") or "").strip()
    type_param = (request.GET.get("type") or "").strip().upper()
    kind = (request.GET.get("kind") or "").strip().lower()

    if status_param:
        statuses = [s.strip().upper() for s in status_param.split(",") if s.strip()]
        if statuses:
            queryset = queryset.filter(status__in=statuses)

    if type_param and type_param != "ALL":
        queryset = queryset.filter(order_type=type_param)

    if kind == "unassigned":
        queryset = unassigned(queryset)

    return queryset


def unassigned(queryset):
    return queryset.filter(
        Q(table_number__isnull=True) | Q(table_number__in=["", state.UNASSIGNED_TABLE]),
        order_type=state.DINE_IN,
    ).exclude(status=state.PAID)


# =====================================
# CREATE ORDER
# =====================================

class OrderCreateView(APIView):
    """Guests submit their cart here; staff use it to open an order directly."""

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        session_key = None
        if not request.user.is_authenticated:
            session_key = guest_session_key(request, create=True)

        try:
            with persistence_guard():
                order = create_order(
                    data["items"],
                    data.get("payment_method"),
                    data["order_type"],
                    data.get("table_number"),
                    number_of_people=data.get("number_of_people", 1),
                    user=request.user,
                    session_key=session_key,
                )
        except OrderingError as exc:
            return ordering_error_response(exc)

        response = Response(OrderSerializer(fetch_order(order.pk)).data, status=status.HTTP_201_CREATED)
        if session_key:
            response["X-Session-Id"] = session_key
        return response


# =====================================
# LISTS AND QUEUES
# =====================================

class OrderListView(generics.ListAPIView):

    serializer_class = OrderSerializer
    permission_classes = [IsAdminOrStaff]

    def get_queryset(self):
        return apply_order_filters(self.request, fetch_orders())


class ActiveOrderView(APIView):
    """The caller's own order that is still pending or being prepared.

    Signed-in callers are matched on the account, anonymous guests on their
    session (cookie or X-Session-Id header).
    """

    permission_classes = [AllowAny]

    def get(self, request):
        order = fetch_active_order(request.user, session_key=guest_session_key(request))
        if order is None:
            return error_response("No active order", 404)
        return Response(OrderSerializer(order).data)


class KitchenQueueView(generics.ListAPIView):

    serializer_class = OrderSerializer
    permission_classes = [IsKitchen]

    def get_queryset(self):
        # Oldest first: the kitchen works in arrival order.
        return fetch_orders(status=state.VALIDATED).order_by("created_at")


class WaiterQueueView(generics.ListAPIView):

    serializer_class = OrderSerializer
    permission_classes = [IsWaiter]

    def get_queryset(self):
        return unassigned(fetch_orders()).order_by("-created_at")


class OrderCountsView(APIView):

    permission_classes = [IsAdminOrStaff]

    def get(self, request):
        orders = fetch_orders()
        return Response({
            state.PENDING: orders.filter(status=state.PENDING).count(),
            state.VALIDATED: orders.filter(status=state.VALIDATED).count(),
        })


class OrderDetailView(APIView):

    permission_classes = [IsAdminOrStaff]

    def get(self, request, pk):
        try:
            order = fetch_order(pk)
        except OrderingError as exc:
            return ordering_error_response(exc)
        return Response(OrderSerializer(order).data)


# =====================================
# STATE CHANGES
# =====================================

class OrderStatusUpdateView(APIView):
    permission_classes = [IsAdminOrStaff]

    def patch(self, request, pk):
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            with persistence_guard():
                order = change_status(
                    pk,
                    serializer.validated_data["status"],
                    role=role_of(request.user),
                    user=request.user,
                    expected_version=serializer.validated_data.get("expected_version"),
                )
        except OrderingError as exc:
            return ordering_error_response(exc)

        return Response(OrderSerializer(fetch_order(order.pk)).data, status=200)


class MainsStartedView(APIView):
    permission_classes = [IsWaiter]

    def post(self, request, pk):
        try:
            with persistence_guard():
                order = start_mains(pk, role=role_of(request.user))
        except OrderingError as exc:
            return ordering_error_response(exc)

        return Response(OrderSerializer(fetch_order(order.pk)).data, status=200)


class NumberOfPeopleView(APIView):
    permission_classes = [IsWaiter]

    def patch(self, request, pk):
        serializer = NumberOfPeopleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            with persistence_guard():
                order = set_number_of_people(
                    pk,
                    serializer.validated_data["number_of_people"],
                    expected_version=serializer.validated_data.get("expected_version"),
                )
        except OrderingError as exc:
            return ordering_error_response(exc)

        return Response(OrderSerializer(fetch_order(order.pk)).data, status=200)


class ItemPreparedView(APIView):
    permission_classes = [IsKitchen]

    def patch(self, request, pk):
        serializer = ItemPreparedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            with persistence_guard():
                item = update_order_item_prepared(
                    pk,
                    serializer.validated_data["is_prepared"],
                    role=role_of(request.user),
                )
        except OrderingError as exc:
            return ordering_error_response(exc)

        return Response(
            {"id": item.pk, "order": str(item.order_id), "is_prepared": item.is_prepared},
            status=200,
        )


# =====================================
# TABLE ASSIGNMENT
# =====================================

class AssignTableView(APIView):
    permission_classes = [IsWaiter]

    def post(self, request, pk):
        serializer = AssignTableSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            with persistence_guard():
                outcome = assign_order_to_table(
                    pk,
                    serializer.validated_data["table_id"],
                    expected_version=serializer.validated_data.get("expected_version"),
                    user=request.user,
                )
        except OrderingError as exc:
            return ordering_error_response(exc)

        if outcome.validated:
            message = f"Order validated and assigned to table {outcome.table.label}"
        else:
            message = f"Order moved to table {outcome.table.label}"

        return Response(
            {
                "message": message,
                "validated": outcome.validated,
                "order": OrderSerializer(fetch_order(outcome.order.pk)).data,
                "undo_token": outcome.snapshot.to_token(),
            },
            status=200,
        )


class UndoAssignView(APIView):
    permission_classes = [IsWaiter]

    def post(self, request):
        serializer = UndoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            snapshot = UndoSnapshot.from_token(serializer.validated_data["token"])
            with persistence_guard():
                order = revert_assignment(snapshot, user=request.user)
        except OrderingError as exc:
            return ordering_error_response(exc)

        if order is None:
            return error_response("Undo is no longer possible", 409, {"code": "undo_expired"})

        return Response(
            {"message": "Assignment undone", "order": OrderSerializer(fetch_order(order.pk)).data},
            status=200,
        )
