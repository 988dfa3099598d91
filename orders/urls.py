from django.urls import path
from .views import OrderCreateView, OrderListView, ActiveOrderView, OrderDetailView
from .views import KitchenQueueView, WaiterQueueView, OrderCountsView
from .views import OrderStatusUpdateView, MainsStartedView, NumberOfPeopleView, ItemPreparedView
from .views import AssignTableView, UndoAssignView

urlpatterns = [

    path("create/", OrderCreateView.as_view()),
    path("list/", OrderListView.as_view()),
    path("active/", ActiveOrderView.as_view()),
    path("kitchen/", KitchenQueueView.as_view()),
    path("queue/", WaiterQueueView.as_view()),
    path("counts/", OrderCountsView.as_view()),
    path("status/<uuid:pk>/", OrderStatusUpdateView.as_view()),
    path("mains/<uuid:pk>/", MainsStartedView.as_view()),
    path("people/<uuid:pk>/", NumberOfPeopleView.as_view()),
    path("items/<int:pk>/prepared/", ItemPreparedView.as_view()),
    path("assign/<uuid:pk>/", AssignTableView.as_view()),
    path("undo/", UndoAssignView.as_view()),
    path("<uuid:pk>/", OrderDetailView.as_view()),
]
