from django.conf import settings
from django.shortcuts import redirect
from django.urls import resolve, Resolver404


class LoginRequiredMiddleware:
    """
    Every page of the registry sits behind the admin login.
    """

    def __init__(self, get_response):
        self.get_response = get_response

        self.PUBLIC_PREFIXES = (
            settings.LOGIN_URL,
            "/auth/",
            "/static/",
            "/django-admin/",  # Django admin has its own login
        )

    def __call__(self, request):
        path = request.path

        # Allow public paths
        if path.startswith(self.PUBLIC_PREFIXES):
            return self.get_response(request)

        # Block unauthenticated users
        if not request.user.is_authenticated:
            return redirect(settings.LOGIN_URL)

        # Unknown URL → back to the dashboard
        try:
            resolve(path)
        except Resolver404:
            return redirect("pilots:dashboard")

        return self.get_response(request)
