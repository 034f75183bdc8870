from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from modishcarts.core.config import SecurityConfig
from modishcarts.core.exceptions import UnauthorizedError
from modishcarts.core.security import (
    ACCESS_TOKEN, REFRESH_TOKEN, create_access_token, create_refresh_token,
    decode_token, generate_reset_token, hash_password, hash_reset_token,
    is_token_revoked, verify_password,
)
from modishcarts.utils.date_utils import DateUtils

SETTINGS = SecurityConfig(jwt_secret_key="unit-test-secret-key-long-enough-for-hs256", password_hash_rounds=4)


def make_user(**overrides):
    fields = {"id": "3f1c2a9e-0000-4000-8000-000000000001", "is_admin": False, "token_version": 0}
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("correct horse", rounds=4)

        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_verify_handles_missing_or_corrupt_hash(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestTokens:
    def test_access_token_claims(self):
        issued = create_access_token(make_user(is_admin=True), SETTINGS)

        claims = decode_token(issued.token, SETTINGS)

        assert claims.user_id == "3f1c2a9e-0000-4000-8000-000000000001"
        assert claims.token_type == ACCESS_TOKEN
        assert claims.is_admin is True
        assert issued.expires_at > DateUtils.now_utc()

    def test_refresh_token_type_is_checked(self):
        refresh = create_refresh_token(make_user(), SETTINGS)

        assert decode_token(refresh.token, SETTINGS, expected_type=REFRESH_TOKEN).token_type == REFRESH_TOKEN
        with pytest.raises(UnauthorizedError):
            decode_token(refresh.token, SETTINGS)

    def test_wrong_secret(self):
        issued = create_access_token(make_user(), SETTINGS)
        other = SecurityConfig(jwt_secret_key="a-completely-different-secret-key-value")

        with pytest.raises(UnauthorizedError):
            decode_token(issued.token, other)

    def test_expired_token(self):
        now = DateUtils.now_utc()
        token = jwt.encode(
            {"sub": "u1", "type": ACCESS_TOKEN, "ver": 0, "iat": int((now - timedelta(hours=2)).timestamp()),
             "exp": int((now - timedelta(hours=1)).timestamp())},
            SETTINGS.jwt_secret_key,
            algorithm="HS256",
        )

        with pytest.raises(UnauthorizedError) as exc:
            decode_token(token, SETTINGS)
        assert exc.value.status_code == 401
        assert "expired" in exc.value.message


class TestPasswordChangeRevocation:
    def test_token_carries_current_version(self):
        user = make_user(token_version=3)
        claims = decode_token(create_access_token(user, SETTINGS).token, SETTINGS)

        assert claims.token_version == 3
        assert not is_token_revoked(claims, user)

    def test_token_from_older_version_is_revoked(self):
        user = make_user()
        claims = decode_token(create_access_token(user, SETTINGS).token, SETTINGS)
        user.token_version = 1

        assert is_token_revoked(claims, user)

    def test_token_without_version_claim_is_rejected(self):
        now = DateUtils.now_utc()
        token = jwt.encode(
            {"sub": "u1", "type": ACCESS_TOKEN, "iat": int(now.timestamp()),
             "exp": int((now + timedelta(hours=1)).timestamp())},
            SETTINGS.jwt_secret_key,
            algorithm="HS256",
        )

        with pytest.raises(UnauthorizedError):
            decode_token(token, SETTINGS)


class TestResetTokens:
    def test_only_the_digest_is_derivable(self):
        raw, digest = generate_reset_token()

        assert raw != digest
        assert len(digest) == 64
        assert hash_reset_token(raw) == digest
