import base64

from app.core.security import hash_password, verify_password, create_access_token, decode_access_token
from app.services.invites import generate_code


def test_password_hash_is_salted_and_verifies():
    a = hash_password("secret123")
    b = hash_password("secret123")
    assert a != b
    assert verify_password("secret123", a)
    assert not verify_password("wrong-pass", a)


def test_verify_without_hash_is_false():
    assert verify_password("secret123", None) is False
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


def test_token_roundtrip_drops_empty_claims():
    token = create_access_token("user-1", extra={"role": "doctor", "clinic_id": None})
    payload = decode_access_token(token)
    assert payload["sub"] == "user-1"
    assert payload["role"] == "doctor"
    assert "clinic_id" not in payload


def test_tampered_token_is_rejected():
    token = create_access_token("user-1")
    assert decode_access_token(token + "x") is None


def test_generated_codes_carry_enough_entropy():
    codes = {generate_code() for _ in range(50)}
    assert len(codes) == 50
    for code in codes:
        padded = code + "=" * (-len(code) % 8)
        assert len(base64.b32decode(padded)) * 8 >= 80
