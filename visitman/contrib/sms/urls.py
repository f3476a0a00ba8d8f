from django.urls import path

from .views import SMSStatusCallbackView

app_name = "visitman_sms"

urlpatterns = [
    path("callback/", SMSStatusCallbackView.as_view(), name="sms-callback"),
]
