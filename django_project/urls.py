from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("examination_system.api.urls")),
    path("", include("examination_system.urls")),
]
