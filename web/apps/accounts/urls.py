from django.urls import path

from .views import PasswordView, ProfileView

app_name = "accounts"

urlpatterns = [
    path("profile", ProfileView.as_view(), name="profile"),
    path("password", PasswordView.as_view(), name="password"),
]
