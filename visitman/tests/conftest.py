"""Pytest fixtures for Visitman tests."""

from datetime import date

import pytest
from django.utils import timezone

from visitman.models import (
    Guest,
    Member,
    ReciprocatingClub,
    ReciprocatingMember,
)


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def future_day():
    """
    First day of a month well ahead, so a run of bookings stays in one
    month and is always upcoming.
    """
    current = timezone.localdate()
    return date(current.year + 1, 3, 1)


@pytest.fixture
def host(db):
    """Create an active hosting member."""
    return Member.objects.create(
        member_number="M-001",
        first_name="Wanjiru",
        last_name="Kamau",
        phone_number="0711000001",
        receive_messages=True,
    )


@pytest.fixture
def other_host(db):
    return Member.objects.create(
        member_number="M-002",
        first_name="Otieno",
        last_name="Odhiambo",
        phone_number="0711000002",
    )


@pytest.fixture
def guest(db):
    """Create a test guest."""
    return Guest.objects.create(
        first_name="John",
        last_name="Doe",
        phone_number="0722000001",
        id_number="12345678",
        email="John@Example.com",
        receive_messages=True,
    )


@pytest.fixture
def make_hosts(db):
    """Factory for extra hosts, so a guest can exceed limits without filling one host."""

    def make(count):
        return [
            Member.objects.create(member_number=f"H-{index:03d}", first_name=f"Host{index}")
            for index in range(count)
        ]

    return make


@pytest.fixture
def club(db):
    return ReciprocatingClub.objects.create(name="Muthaiga Golf Club", email="info@muthaiga.test")


@pytest.fixture
def reciprocating_member(db, club):
    return ReciprocatingMember.objects.create(
        first_name="Amina",
        last_name="Hassan",
        id_number="87654321",
        phone_number="0733000001",
        member_number="MGC-42",
        club=club,
        receive_messages=True,
    )


@pytest.fixture
def staff_user(db, django_user_model):
    return django_user_model.objects.create_user(
        username="reception",
        password="secret",
        email="reception@example.com",
        is_staff=True,
    )


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user)
    return client


@pytest.fixture
def sms_configured(settings):
    """SMS Leopard credentials (requests must still be mocked)."""
    settings.VISITMAN = {
        **settings.VISITMAN,
        "SMS_API_KEY": "key",
        "SMS_API_SECRET": "secret",
        "SMS_SENDER_ID": "NYERICLUB",
    }



@pytest.fixture
def catch_signal():
    """
    Connect a recording receiver to a signal for the duration of a test.

    Usage:
        registered = catch_signal(guest_registered)
        ...
        sender, kwargs = registered[0]
    """
    connected = []

    def listen(signal):
        received = []

        def handler(sender, **kwargs):
            kwargs.pop("signal", None)
            received.append((sender, kwargs))

        signal.connect(handler, weak=False)
        connected.append((signal, handler))
        return received

    yield listen
    for signal, handler in connected:
        signal.disconnect(handler)
