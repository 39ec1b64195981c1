from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    # JSON API, tenant resolved by CurrentCompanyMiddleware
    path("api/", include("ledger_core.urls")),
]
