from django.contrib.auth import authenticate, login, logout
from django.shortcuts import render, redirect
from django.contrib import messages
from django.conf import settings


def login_view(request):
    if request.user.is_authenticated:
        return redirect("pilots:dashboard")

    if request.method == "POST":
        username = request.POST.get("username")
        password = request.POST.get("password")

        user = authenticate(request, username=username, password=password)

        if user:
            login(request, user)
            return redirect(settings.LOGIN_REDIRECT_URL)

        messages.error(request, "שם משתמש או סיסמה שגויים")

    return render(request, "auth/login.html")


def logout_view(request):
    logout(request)
    return redirect(settings.LOGIN_URL)
