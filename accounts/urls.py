from django.urls import path

from rest_framework_simplejwt.views import (
    TokenRefreshView,
)

from .views import (
    CustomTokenObtainPairView,
    MeProfileView,
    StaffUserListCreateView,
)


urlpatterns = [

    path("token/", CustomTokenObtainPairView.as_view()),
    path("token/refresh/", TokenRefreshView.as_view()),
    path("me/", MeProfileView.as_view(), name="me-profile"),
    path("staff/", StaffUserListCreateView.as_view(), name="staff-list-create"),
]
