from django.http import HttpResponse, JsonResponse
from django.views import View

from restricted_subdomain.decorators import (
    no_subdomain_required,
    subdomain_required,
    use_restricted_subdomains,
)
from restricted_subdomain.middleware import current_subdomain_symbol
from restricted_subdomain.views import RestrictedSubdomainViewMixin

from .models import Widget


def widget_list(request):
    names = sorted(Widget.objects.values_list("name", flat=True))
    return JsonResponse({"subdomain": current_subdomain_symbol(), "widgets": names})


def failing_view(request):
    raise RuntimeError("view failed")


@subdomain_required
def tenant_only(request):
    return HttpResponse("tenant")


@no_subdomain_required
def global_only(request):
    return HttpResponse("global")


def remember(request):
    request.tenant_session["last_visit"] = request.GET.get("page", "home")
    return JsonResponse({"last_visit": request.tenant_session["last_visit"]})


class WidgetCountView(RestrictedSubdomainViewMixin, View):
    global_subdomains = ["admin"]

    def get_request_subdomain(self, request):
        return header_subdomain(request)

    def get(self, request):
        return JsonResponse({"count": Widget.objects.count()})


@use_restricted_subdomains(global_subdomains=["portal"])
def portal_widgets(request):
    return JsonResponse({"count": Widget.objects.count()})


def header_subdomain(request):
    return request.headers.get("X-Subdomain")
