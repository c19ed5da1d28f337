"""Tests pour les jetons signés d'upload client."""

from __future__ import annotations

from backend.domain.upload_tokens import create_upload_token, decode_upload_token

SECRET = "upload-token-secret-for-tests-0123456789"
ALG = "HS256"
MAX_BYTES = 1024


def _token(expires_min: int = 5, secret: str = SECRET) -> str:
    return create_upload_token(
        secret, ALG, expires_min, pathname="uploads/a.mp3", content_type="audio/mpeg",
        max_bytes=MAX_BYTES,
    )


def test_round_trip() -> None:
    data = decode_upload_token(_token(), SECRET, ALG)

    assert data.sub == "uploads/a.mp3"
    assert data.content_type == "audio/mpeg"
    assert data.max_bytes == MAX_BYTES


def test_expired_token_is_rejected() -> None:
    assert decode_upload_token(_token(expires_min=-1), SECRET, ALG) is None


def test_wrong_secret_is_rejected() -> None:
    other = _token(secret="another-upload-token-secret-0123456789")
    assert decode_upload_token(other, SECRET, ALG) is None


def test_garbage_is_rejected() -> None:
    assert decode_upload_token("not.a.jwt", SECRET, ALG) is None
