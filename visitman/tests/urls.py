from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("visitman/", include("visitman.urls")),
    path("sms/", include("visitman.contrib.sms.urls")),
]
