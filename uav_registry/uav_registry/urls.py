from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # DJANGO ADMIN (STAFF ONLY)
    path("django-admin/", admin.site.urls),

    # AUTH
    path("auth/", include("accounts.urls")),

    # REMINDERS
    path("notifications/", include("notifications.urls")),

    # DASHBOARD + CRUD
    path("", include("pilots.urls")),
]
