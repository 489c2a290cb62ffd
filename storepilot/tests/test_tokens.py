"""Tests for access/refresh token issuance and verification."""

import pytest
from jose import jwt

from storepilot.auth.tokens import ALGORITHM, TokenClaims, TokenErrorKind, TokenService
from storepilot.tests.helpers import START_TIME, ManualClock

pytestmark = pytest.mark.security

SECRET = "test-secret-that-is-long-enough-for-hs256-signing"
DAY = 24 * 60 * 60


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def tokens(clock):
    return TokenService(SECRET, clock=clock)


def _claims():
    return TokenClaims(subject_id="user-123", email="owner@example.com", role="small_business_owner")


class TestAccessTokens:
    def test_round_trip(self, tokens):
        result = tokens.verify(tokens.issue_access_token(_claims()))
        assert result.valid is True
        assert result.claims == _claims()
        assert result.issued_at == int(START_TIME)
        assert result.expires_at == int(START_TIME) + 900

    def test_standard_claims(self, tokens):
        token = tokens.issue_access_token(_claims())
        payload = jwt.get_unverified_claims(token)
        assert payload["sub"] == "user-123"
        assert payload["iss"] == "shopify-automation-platform"
        assert payload["aud"] == "shopify-automation-users"
        assert jwt.get_unverified_header(token)["alg"] == ALGORITHM

    def test_optional_claims_omitted(self, tokens):
        token = tokens.issue_access_token(TokenClaims(subject_id="user-123"))
        payload = jwt.get_unverified_claims(token)
        assert "email" not in payload
        assert "role" not in payload
        assert tokens.verify(token).claims.email is None

    def test_valid_just_before_expiry(self, tokens, clock):
        token = tokens.issue_access_token(_claims())
        clock.advance(899)
        assert tokens.verify(token).valid is True

    def test_expired_after_fifteen_minutes(self, tokens, clock):
        token = tokens.issue_access_token(_claims())
        clock.advance(900)
        result = tokens.verify(token)
        assert result.valid is False
        assert result.error_kind == TokenErrorKind.EXPIRED

    def test_expired_sixteen_minutes_later(self, tokens, clock):
        token = tokens.issue_access_token(_claims())
        clock.advance(16 * 60)
        assert tokens.verify(token).error_kind == TokenErrorKind.EXPIRED


class TestRefreshTokens:
    def test_default_lifetime_is_seven_days(self, tokens):
        result = tokens.verify_refresh(tokens.issue_refresh_token("user-123"))
        assert result.valid is True
        assert result.remember is False
        assert result.expires_at - result.issued_at == 7 * DAY

    def test_remember_me_lifetime_is_thirty_days(self, tokens):
        result = tokens.verify_refresh(tokens.issue_refresh_token("user-123", remember=True))
        assert result.remember is True
        assert result.expires_at - result.issued_at == 30 * DAY

    def test_refresh_tokens_are_unique(self, tokens):
        assert tokens.issue_refresh_token("user-123") != tokens.issue_refresh_token("user-123")

    def test_refresh_token_expires(self, tokens, clock):
        token = tokens.issue_refresh_token("user-123")
        clock.advance(7 * DAY)
        assert tokens.verify_refresh(token).error_kind == TokenErrorKind.EXPIRED

    def test_refresh_token_not_accepted_as_access(self, tokens):
        token = tokens.issue_refresh_token("user-123")
        result = tokens.verify(token)
        assert result.valid is False
        assert result.error_kind == TokenErrorKind.MALFORMED

    def test_access_token_not_accepted_as_refresh(self, tokens):
        token = tokens.issue_access_token(_claims())
        assert tokens.verify_refresh(token).valid is False


class TestRejectedTokens:
    def test_garbage_is_malformed(self, tokens):
        result = tokens.verify("not-a-jwt")
        assert result.valid is False
        assert result.error_kind == TokenErrorKind.MALFORMED

    def test_empty_string_is_malformed(self, tokens):
        assert tokens.verify("").error_kind == TokenErrorKind.MALFORMED

    def test_other_secret_is_signature_invalid(self, tokens, clock):
        forged = TokenService("a-completely-different-secret-value-123", clock=clock)
        result = tokens.verify(forged.issue_access_token(_claims()))
        assert result.error_kind == TokenErrorKind.SIGNATURE_INVALID

    def test_tampered_payload_is_signature_invalid(self, tokens):
        header, payload, signature = tokens.issue_access_token(_claims()).split(".")
        other = tokens.issue_access_token(TokenClaims(subject_id="someone-else"))
        tampered = ".".join([header, other.split(".")[1], signature])
        assert tokens.verify(tampered).error_kind == TokenErrorKind.SIGNATURE_INVALID

    def test_wrong_issuer_is_malformed(self, tokens, clock):
        other = TokenService(SECRET, issuer="someone-else", clock=clock)
        result = tokens.verify(other.issue_access_token(_claims()))
        assert result.error_kind == TokenErrorKind.MALFORMED

    def test_missing_subject_is_malformed(self, tokens):
        token = jwt.encode(
            {
                "iat": int(START_TIME),
                "exp": int(START_TIME) + 900,
                "iss": "shopify-automation-platform",
                "aud": "shopify-automation-users",
            },
            SECRET,
            algorithm=ALGORITHM,
        )
        assert tokens.verify(token).error_kind == TokenErrorKind.MALFORMED

    def test_secret_rotation_invalidates_tokens(self, tokens, clock):
        token = tokens.issue_access_token(_claims())
        rotated = TokenService("rotated-secret-value-that-is-long-enough", clock=clock)
        assert rotated.verify(token).valid is False
