"""Tests for guest and member services, models and helpers."""

from datetime import timedelta

import pytest
from django.db import IntegrityError
from django.utils import timezone

from visitman.exceptions import VisitmanError
from visitman.models import Guest, GuestType, Member
from visitman.services import guests, members
from visitman.utils import format_duration, is_valid_phone, normalize_phone

pytestmark = pytest.mark.django_db


class TestGuestModel:
    def test_save_normalizes(self, guest):
        assert guest.phone_number == "254722000001"
        assert guest.email == "john@example.com"
        assert guest.name == "John Doe"

    def test_blank_id_number_is_null(self, db):
        first = Guest.objects.create(first_name="A", last_name="B", phone_number="0700000001", id_number="")
        second = Guest.objects.create(first_name="C", last_name="D", phone_number="0700000002", id_number="")
        assert first.id_number is None
        assert second.id_number is None

    def test_phone_unique_per_type(self, guest):
        Guest.objects.create(
            guest_type=GuestType.SUPPLIER, first_name="J", last_name="D", phone_number=guest.phone_number
        )
        with pytest.raises(IntegrityError):
            Guest.objects.create(first_name="J", last_name="D", phone_number="0722000001")


class TestGuestService:
    def test_lookups(self, guest):
        assert guests.get(guest.pk) == guest
        assert guests.get(999) is None
        assert guests.get_by_phone("0722 000 001") == guest
        assert guests.get_by_phone("0722000001", guest_type=GuestType.SUPPLIER) is None
        assert guests.get_by_phone("") is None
        assert guests.get_by_id_number(" 12345678 ") == guest
        assert guests.get_by_id_number("") is None

    def test_search(self, guest):
        Guest.objects.create(first_name="Jane", last_name="Roe", phone_number="0733000009")

        assert guests.search("doe") == [guest]
        assert guests.search("12345") == [guest]
        assert len(guests.search("")) == 2
        assert guests.search("doe", guest_type=GuestType.SUPPLIER) == []

    def test_update_ignores_protected_fields(self, guest):
        updated = guests.update(guest.pk, email="new@example.com", status="banned")

        assert updated.email == "new@example.com"
        assert updated.status == "active"
        assert guests.update(999, email="x@example.com") is None

    def test_delete(self, guest):
        assert guests.delete(guest.pk) is True
        assert guests.delete(guest.pk) is False


class TestMemberService:
    def test_create_and_lookup(self, db):
        member = members.create("M-100", "Grace", "Wambui", phone_number="0711222333")

        assert member.phone_number == "254711222333"
        assert members.get(member.pk) == member
        assert members.get_by_number("M-100") == member
        assert members.search("wambui") == [member]

    def test_duplicate_number(self, host):
        with pytest.raises(VisitmanError) as exc:
            members.create(host.member_number, "Other")
        assert exc.value.code == "DUPLICATE_MEMBER_NUMBER"

    def test_set_active(self, host):
        members.set_active(host.pk, False)

        assert members.get(host.pk) is None
        assert members.get_by_number(host.member_number) is None
        assert Member.objects.get(pk=host.pk).is_active is False

    def test_set_active_unknown(self, db):
        with pytest.raises(VisitmanError) as exc:
            members.set_active(999, True)
        assert exc.value.code == "MEMBER_NOT_FOUND"

    def test_get_for_user(self, host, staff_user):
        host.user = staff_user
        host.save()

        assert members.get_for_user(staff_user) == host
        assert members.get_for_user(None) is None


class TestUtils:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("0712345678", "254712345678"),
            ("712345678", "254712345678"),
            ("+254 712 345 678", "254712345678"),
            ("0110 123 456", "254110123456"),
            ("254712345678", "254712345678"),
            ("not a phone", ""),
            ("", ""),
        ],
    )
    def test_normalize_phone(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_is_valid_phone(self):
        assert is_valid_phone("0712345678") is True
        assert is_valid_phone("0110123456") is True
        assert is_valid_phone("12345") is False
        assert is_valid_phone("0712") is False
        assert is_valid_phone("+44 20 7946 0958") is False
        assert is_valid_phone("") is False

    def test_format_duration(self):
        start = timezone.now()
        assert format_duration(start, start + timedelta(hours=1, minutes=7)) == "1:07"
        assert format_duration(start, start + timedelta(days=1, hours=2)) == "1 day(s) 2:00"
        assert format_duration(start, None) == "N/A"
