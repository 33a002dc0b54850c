import pytest
from pydantic import ValidationError

from gangesbot.core.config import Settings, settings
from gangesbot.core.phone import normalize_phone

API = settings.API_V1_STR
PHONE = "+91 98000-12345"


def _request_code(client, phone=PHONE) -> str:
    resp = client.post(f"{API}/auth/otp/request", json={"phone_number": phone})
    assert resp.status_code == 200
    return resp.json()["debug_code"]


def test_otp_login_creates_user_and_demo_orders(client):
    code = _request_code(client)
    resp = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code})
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_new_user"] is True

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    me = client.get(f"{API}/auth/me", headers=headers).json()
    assert me["phone_number"] == "+919800012345"
    assert me["role"] == "customer"
    assert me["is_test_account"] is False

    orders = client.get(f"{API}/orders/", headers=headers).json()
    assert 3 <= len(orders) <= 5
    dates = [o["order_date"] for o in orders]
    assert dates == sorted(dates, reverse=True)


def test_second_login_is_not_new_user(client):
    code = _request_code(client)
    client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code})

    code = _request_code(client)
    body = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code}).json()
    assert body["is_new_user"] is False


def test_wrong_code_is_rejected(client):
    code = _request_code(client)
    wrong = "000000" if code != "000000" else "111111"
    resp = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": wrong})
    assert resp.status_code == 401


def test_code_cannot_be_reused(client):
    code = _request_code(client)
    client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code})
    resp = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code})
    assert resp.status_code == 401


def test_new_code_invalidates_previous(client):
    old = _request_code(client)
    new = _request_code(client)
    if old != new:
        resp = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": old})
        assert resp.status_code == 401
    resp = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": new})
    assert resp.status_code == 200


def test_too_many_attempts_burns_challenge(client, monkeypatch):
    monkeypatch.setattr(settings, "OTP_MAX_ATTEMPTS", 2)
    code = _request_code(client)
    wrong = "000000" if code != "000000" else "111111"
    for _ in range(2):
        client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": wrong})
    resp = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code})
    assert resp.status_code == 401


def test_test_account_flag_set_at_login(client, monkeypatch):
    monkeypatch.setattr(settings, "TEST_ACCOUNT_PHONES", ["+919800012345"])
    code = _request_code(client)
    token = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code}).json()["access_token"]
    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["is_test_account"] is True


def test_invalid_phone_is_400(client):
    resp = client.post(f"{API}/auth/otp/request", json={"phone_number": "not-a-phone"})
    assert resp.status_code == 400


def test_no_debug_code_in_production(client, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    resp = client.post(f"{API}/auth/otp/request", json={"phone_number": PHONE})
    assert resp.status_code == 200
    assert resp.json()["debug_code"] is None


def test_invalid_token_is_401(client):
    resp = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


@pytest.mark.parametrize(
    "raw, expected",
    [("+91 98000 12345", "+919800012345"), ("(555) 010-9999", "5550109999")],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_existing_user_without_orders_gets_demo_orders(client, make_user):
    user = make_user("+919800012345")
    code = _request_code(client)
    body = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code}).json()
    assert body["is_new_user"] is False

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    orders = client.get(f"{API}/orders/", headers=headers).json()
    assert 3 <= len(orders) <= 5
    assert client.get(f"{API}/auth/me", headers=headers).json()["id"] == user.id


def test_demo_orders_are_seeded_once(client):
    code = _request_code(client)
    token = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code}).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    first = len(client.get(f"{API}/orders/", headers=headers).json())

    code = _request_code(client)
    client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code})
    assert len(client.get(f"{API}/orders/", headers=headers).json()) == first


def test_no_demo_orders_when_seeding_is_off(client, monkeypatch):
    monkeypatch.setattr(settings, "SEED_DEMO_ORDERS", False)
    code = _request_code(client)
    token = client.post(f"{API}/auth/otp/verify", json={"phone_number": PHONE, "code": code}).json()["access_token"]
    assert client.get(f"{API}/orders/", headers={"Authorization": f"Bearer {token}"}).json() == []


def test_settings_normalise_phone_lists():
    configured = Settings(TEST_ACCOUNT_PHONES=["+91 98000-12345"], ADMIN_BOOTSTRAP_PHONE="(555) 010-9999")
    assert configured.TEST_ACCOUNT_PHONES == ["+919800012345"]
    assert configured.ADMIN_BOOTSTRAP_PHONE == "5550109999"


def test_settings_reject_bad_test_account_phone():
    with pytest.raises(ValidationError):
        Settings(TEST_ACCOUNT_PHONES=["+919800012345", "not-a-phone"])
