from __future__ import annotations

import pytest

from rentmarket import errors as E


ALL = [
    E.OwnerOnly,
    E.NotFound,
    E.Unauthorized,
    E.InvalidAmount,
    E.AlreadyListed,
    E.NotAvailable,
    E.RentalActive,
    E.RentalNotExpired,
    E.InsufficientPayment,
    E.InvalidDuration,
    E.TransferFailed,
]


def test_codes_cover_200_to_210():
    assert [cls.code for cls in ALL] == list(range(200, 211))
    assert len({cls.name for cls in ALL}) == len(ALL)


@pytest.mark.parametrize("cls", ALL)
def test_error_for_code_round_trips(cls):
    assert E.error_for_code(cls.code) is cls
    assert issubclass(cls, E.MarketError)


def test_unknown_code():
    with pytest.raises(ValueError):
        E.error_for_code(199)


def test_to_dict_and_str():
    err = E.NotFound("listing not found", listing_id=3)
    d = err.to_dict()
    assert d == {"code": 201, "name": "NotFound", "message": "listing not found", "details": {"listing_id": 3}}
    assert str(err).startswith("NotFound(201): listing not found")


def test_insufficient_payment_details():
    err = E.InsufficientPayment(required=10, available=4, payer="bob")
    assert err.details == {"required": 10, "available": 4, "payer": "bob"}
    assert err.code == 208


def test_default_message_is_name():
    assert E.OwnerOnly().message == "OwnerOnly"
