from rest_framework import generics
from rest_framework.permissions import AllowAny

from accounts.permissions import role_of

from .models import Category, MenuItem
from .serializers import CategorySerializer, MenuItemSerializer


# ----------------------------
# CATEGORY
# ----------------------------

class CategoryListView(generics.ListAPIView):

    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    permission_classes = [AllowAny]


# ----------------------------
# MENU
# ----------------------------

class MenuListView(generics.ListAPIView):
    """
    Supported query params:
    - category=<slug>
    - all=1 (admin only, includes unavailable items)
    """

    serializer_class = MenuItemSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        qs = MenuItem.objects.select_related("category")

        include_all = self.request.GET.get("all") == "1"
        if not (include_all and role_of(self.request.user) == "ADMIN"):
            qs = qs.filter(is_available=True)

        category = (self.request.GET.get("category") or "").strip()
        if category:
            qs = qs.filter(category__slug=category)

        return qs
