from django.urls import path
from .views import CategoryListView, MenuListView

urlpatterns = [

    path("categories/", CategoryListView.as_view(), name="category-list"),
    path("menu/", MenuListView.as_view(), name="menu-list"),
]
