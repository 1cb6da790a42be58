from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.views.decorators.http import require_POST

from notifications.services.expiry import days_until, expiry_status
from pilots.dashboard import calculate_stats, expired_licenses, upcoming_expirations
from pilots.forms import ManagerRecipientForm, PilotForm
from pilots.models import ManagerRecipient, Pilot


# ============================================================
# DASHBOARD
# ============================================================

@login_required
def dashboard(request):
    today = timezone.localdate()
    pilots = list(Pilot.objects.all())

    return render(request, "pilots/dashboard.html", {
        "today": today,
        "stats": calculate_stats(pilots, today),
        "upcoming": upcoming_expirations(pilots, today),
        "expired": expired_licenses(pilots, today),
    })


# ============================================================
# PILOTS
# ============================================================

SORT_KEYS = {
    "name": lambda p: (p.first_name.casefold(), p.last_name.casefold()),
    "medical": lambda p: p.health_certificate_expiry,
    # pilots without an instructor license sort last
    "instructor": lambda p: (p.instructor_license_expiry is None, p.instructor_license_expiry),
}


def filter_and_sort_pilots(pilots, search="", sort="name"):
    """
    Name search (case-insensitive, over "first last") plus sorting.
    A leading "-" on ``sort`` reverses the order.
    """
    search = (search or "").strip().casefold()
    if search:
        pilots = [p for p in pilots if search in p.full_name.casefold()]

    reverse = sort.startswith("-")
    key = SORT_KEYS.get(sort.lstrip("-"), SORT_KEYS["name"])
    return sorted(pilots, key=key, reverse=reverse)


def _status_cell(today, expiry):
    if expiry is None:
        return None
    days = days_until(today, expiry)
    return {"date": expiry, "days": days, "status": expiry_status(days)}


@login_required
def pilot_list(request):
    today = timezone.localdate()
    search = request.GET.get("q", "")
    sort = request.GET.get("sort", "name")

    pilots = filter_and_sort_pilots(Pilot.objects.all(), search=search, sort=sort)

    rows = []
    for pilot in pilots:
        rows.append({
            "obj": pilot,
            "medical": _status_cell(today, pilot.health_certificate_expiry),
            "instructor": (
                _status_cell(today, pilot.instructor_license_expiry)
                if pilot.is_instructor else None
            ),
        })

    return render(request, "pilots/pilot_list.html", {
        "rows": rows,
        "total_pilots": len(rows),
        "search": search,
        "sort": sort,
    })


@login_required
def pilot_create(request):
    form = PilotForm(request.POST or None)

    if request.method == "POST" and form.is_valid():
        pilot = form.save()
        messages.success(request, f"המטיס {pilot.full_name} נוסף בהצלחה")
        return redirect("pilots:pilot-list")

    return render(request, "pilots/pilot_form.html", {
        "form": form,
        "is_editing": False,
    })


@login_required
def pilot_edit(request, pk):
    pilot = get_object_or_404(Pilot, pk=pk)
    form = PilotForm(request.POST or None, instance=pilot)

    if request.method == "POST" and form.is_valid():
        form.save()
        messages.success(request, f"המטיס {pilot.full_name} עודכן")
        return redirect("pilots:pilot-list")

    return render(request, "pilots/pilot_form.html", {
        "form": form,
        "pilot": pilot,
        "is_editing": True,
    })


@login_required
@require_POST
def pilot_delete(request, pk):
    pilot = get_object_or_404(Pilot, pk=pk)
    name = pilot.full_name
    pilot.delete()

    messages.success(request, f"המטיס {name} נמחק")
    return redirect("pilots:pilot-list")


# ============================================================
# MANAGER MAILING LIST
# ============================================================

@login_required
def manager_list(request):
    form = ManagerRecipientForm(request.POST or None)

    if request.method == "POST" and form.is_valid():
        manager = form.save()
        messages.success(request, f"{manager.name} נוסף/ה לרשימת התפוצה")
        return redirect("pilots:manager-list")

    return render(request, "pilots/manager_list.html", {
        "managers": ManagerRecipient.objects.all(),
        "form": form,
    })


@login_required
def manager_edit(request, pk):
    manager = get_object_or_404(ManagerRecipient, pk=pk)
    form = ManagerRecipientForm(request.POST or None, instance=manager)

    if request.method == "POST" and form.is_valid():
        form.save()
        messages.success(request, f"{manager.name} עודכן/ה")
        return redirect("pilots:manager-list")

    return render(request, "pilots/manager_form.html", {
        "form": form,
        "manager": manager,
    })


@login_required
@require_POST
def manager_delete(request, pk):
    manager = get_object_or_404(ManagerRecipient, pk=pk)
    manager.delete()

    messages.success(request, f"{manager.name} הוסר/ה מרשימת התפוצה")
    return redirect("pilots:manager-list")
