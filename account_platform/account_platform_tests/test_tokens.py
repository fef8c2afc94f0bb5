"""Tests for bearer token issuance and verification."""
from datetime import timedelta

import jwt
import pytest

from account_platform.account_platform.account_service.auth import TokenClaims, TokenService
from account_platform.account_platform.account_service.errors import InvalidToken

SECRET = "token-test-secret-key-of-reasonable-length"
T0 = 1_700_000_000
DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def tokens(clock):
    return TokenService(SECRET, clock=clock)


def test_issue_and_verify_round_trip(tokens):
    token = tokens.issue("account-1", "a@x.com")
    claims = tokens.verify(token)
    assert isinstance(claims, TokenClaims)
    assert claims.subject == "account-1"
    assert claims.email == "a@x.com"
    assert claims.issued_at == T0
    assert claims.expires_at == T0 + DAY
    assert claims.token_id


def test_token_lifetime_is_24_hours_by_default(tokens):
    assert tokens.ttl_seconds == DAY


@pytest.mark.parametrize("offset", [0, 1, DAY // 2, DAY - 1])
def test_token_accepted_within_lifetime(tokens, clock, offset):
    token = tokens.issue("account-1", "a@x.com")
    clock.now = T0 + offset
    assert tokens.verify(token).subject == "account-1"


@pytest.mark.parametrize("offset", [DAY, DAY + 1, 7 * DAY])
def test_token_rejected_at_and_after_expiry(tokens, clock, offset):
    token = tokens.issue("account-1", "a@x.com")
    clock.now = T0 + offset
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_token_from_other_secret_is_rejected(clock):
    issuer = TokenService("first-secret-key-of-reasonable-length", clock=clock)
    verifier = TokenService("second-secret-key-of-reasonable-length", clock=clock)
    with pytest.raises(InvalidToken):
        verifier.verify(issuer.issue("account-1", "a@x.com"))


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", None, 42])
def test_malformed_tokens_are_rejected(tokens, token):
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_tampered_payload_is_rejected(tokens):
    header, _, signature = tokens.issue("account-1", "a@x.com").split(".")
    forged_payload = jwt.encode(
        {"sub": "account-2", "email": "b@x.com", "iat": T0, "exp": T0 + DAY}, "whatever"
    ).split(".")[1]
    with pytest.raises(InvalidToken):
        tokens.verify(f"{header}.{forged_payload}.{signature}")


def test_unsigned_token_is_rejected(tokens):
    token = jwt.encode(
        {"sub": "account-1", "email": "a@x.com", "iat": T0, "exp": T0 + DAY}, None, algorithm="none"
    )
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_token_missing_claims_is_rejected(tokens):
    token = jwt.encode({"sub": "account-1", "exp": T0 + DAY}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_all_failure_causes_share_one_error(tokens, clock):
    expired = tokens.issue("account-1", "a@x.com")
    forged = TokenService("another-secret-key-of-reasonable-length", clock=clock).issue(
        "account-1", "a@x.com"
    )
    clock.now = T0 + DAY
    messages = set()
    for token in ("garbage", forged, expired):
        with pytest.raises(InvalidToken) as exc_info:
            tokens.verify(token)
        messages.add(str(exc_info.value))
    assert len(messages) == 1


def test_tokens_issued_in_same_second_differ(tokens):
    assert tokens.issue("account-1", "a@x.com") != tokens.issue("account-1", "a@x.com")


def test_custom_ttl(clock):
    tokens = TokenService(SECRET, ttl=timedelta(minutes=5), clock=clock)
    token = tokens.issue("account-1", "a@x.com")
    clock.now = T0 + 299
    tokens.verify(token)
    clock.now = T0 + 300
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenService("")


def test_non_hmac_algorithm_is_refused():
    with pytest.raises(ValueError):
        TokenService(SECRET, algorithm="RS256")


def test_fractional_issue_time_keeps_full_lifetime(tokens, clock):
    issued = T0 + 0.9
    clock.now = issued
    token = tokens.issue("account-1", "a@x.com")
    assert tokens.verify(token).expires_at == issued + DAY

    clock.now = issued + DAY - 0.5
    assert tokens.verify(token).subject == "account-1"
    clock.now = issued + DAY
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_boolean_timestamps_are_rejected(tokens):
    forged = jwt.encode(
        {"sub": "account-1", "email": "a@x.com", "iat": True, "exp": True},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidToken):
        tokens.verify(forged)
