"""
Visitman SMS - gateway integration, notifications and delivery log.

Usage:
    INSTALLED_APPS = [
        ...
        "visitman",
        "visitman.contrib.sms",
    ]

    # urls.py
    path("sms/", include("visitman.contrib.sms.urls")),

    from visitman.contrib.sms import SMSService

    SMSService.send("0712345678", "Hello")
    SMSService.check_pending_delivery()
"""


def __getattr__(name):
    if name == "SMSService":
        from visitman.contrib.sms.service import SMSService

        return SMSService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["SMSService"]
