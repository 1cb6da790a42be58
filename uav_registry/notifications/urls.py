from django.urls import path

from notifications.views import run_reminders, send_pilot_reminder

app_name = "notifications"

urlpatterns = [
    path("run/", run_reminders, name="run"),
    path("pilots/<int:pk>/remind/<str:kind>/", send_pilot_reminder, name="pilot-remind"),
]
