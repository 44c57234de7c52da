import time

import pytest
from jose import jwt

from api.utils.security import PasswordHasher, TokenService, now_ms
from exceptions import ConfigurationError, InvalidTokenError

USER_ID = "5f0c1e2a9b1d4c3e8a7b6c5d"


def test_issue_and_verify_returns_subject():
    service = TokenService("secret")
    token = service.issue(USER_ID)
    assert service.verify(token) == USER_ID


def test_token_claims_carry_subject_and_millisecond_issue_time():
    before = now_ms()
    token = TokenService("secret").issue(USER_ID)
    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == USER_ID
    assert before <= claims["iat"] <= now_ms()
    assert "exp" not in claims


def test_verify_rejects_token_signed_with_other_secret():
    token = TokenService("other-secret").issue(USER_ID)
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(token)


def test_verify_rejects_garbage():
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify("123")


def test_verify_rejects_tampered_payload():
    service = TokenService("secret")
    header, payload, signature = service.issue(USER_ID).split(".")
    other_payload = TokenService("secret").issue("5f0c1e2a9b1d4c3e8a7b6c5e").split(".")[1]
    with pytest.raises(InvalidTokenError):
        service.verify(f"{header}.{other_payload}x.{signature}")
    with pytest.raises(InvalidTokenError):
        service.verify(f"{header}.{other_payload}.{signature}")


def test_verify_rejects_token_without_subject():
    token = jwt.encode({"iat": now_ms()}, "secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(token)


def test_empty_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenService("")


def test_expiring_tokens_carry_exp():
    token = TokenService("secret", expire_minutes=5).issue(USER_ID)
    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] > time.time()
    assert TokenService("secret", expire_minutes=5).verify(token) == USER_ID


def test_expired_token_is_rejected():
    token = jwt.encode(
        {"sub": USER_ID, "iat": now_ms() - 120_000, "exp": int(time.time()) - 60},
        "secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        TokenService("secret", expire_minutes=1).verify(token)


def test_password_hash_verifies_only_the_original_password():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("secret1")
    assert hashed != "secret1"
    assert hasher.verify("secret1", hashed)
    assert not hasher.verify("secret2", hashed)


def test_password_verify_with_unparseable_hash_is_false():
    assert not PasswordHasher(rounds=4).verify("secret1", "not-a-hash")
