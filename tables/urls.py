from django.urls import path
from .views import (
    TableListView,
    TableCreateView,
    TableLayoutView,
)

urlpatterns = [

    path("list/", TableListView.as_view()),

    path("create/", TableCreateView.as_view()),

    path("layout/", TableLayoutView.as_view()),
]
