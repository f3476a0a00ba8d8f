from django.urls import path

from visitman import views

app_name = "visitman"

urlpatterns = [
    path("guests/register/", views.RegisterGuestView.as_view(), name="register-guest"),
    path("guests/<int:guest_id>/status/", views.GuestStatusView.as_view(), name="guest-status"),
    path("visits/<int:visit_id>/sign-in/", views.SignInView.as_view(), name="sign-in"),
    path("visits/<int:visit_id>/sign-out/", views.SignOutView.as_view(), name="sign-out"),
    path("visits/<int:visit_id>/cancel/", views.CancelVisitView.as_view(), name="cancel-visit"),
    path(
        "reciprocal/members/<int:member_id>/sign-in/",
        views.ReciprocalSignInView.as_view(),
        name="reciprocal-sign-in",
    ),
    path(
        "reciprocal/visits/<int:visit_id>/sign-out/",
        views.ReciprocalSignOutView.as_view(),
        name="reciprocal-sign-out",
    ),
]
