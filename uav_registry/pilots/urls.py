from django.urls import path

from pilots.views import (
    dashboard,
    pilot_list, pilot_create, pilot_edit, pilot_delete,
    manager_list, manager_edit, manager_delete,
)

app_name = "pilots"

urlpatterns = [
    # Dashboard
    path("", dashboard, name="dashboard"),

    # Pilots
    path("pilots/", pilot_list, name="pilot-list"),
    path("pilots/create/", pilot_create, name="pilot-create"),
    path("pilots/<int:pk>/edit/", pilot_edit, name="pilot-edit"),
    path("pilots/<int:pk>/delete/", pilot_delete, name="pilot-delete"),

    # Manager mailing list
    path("managers/", manager_list, name="manager-list"),
    path("managers/<int:pk>/edit/", manager_edit, name="manager-edit"),
    path("managers/<int:pk>/delete/", manager_delete, name="manager-delete"),
]
