"""Tests for password hashing, JWT handling and user serialization."""

from uuid import uuid4

from conftest import make_user
from studyforge.api.deps import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from studyforge.schemas.user import UserRead


def test_password_hash_roundtrip():
    hashed = hash_password("correct horse battery")

    assert hashed != "correct horse battery"
    assert verify_password("correct horse battery", hashed)
    assert not verify_password("wrong password", hashed)


def test_access_token_roundtrip():
    user_id = uuid4()

    assert decode_access_token(create_access_token(user_id)) == user_id


def test_invalid_token_decodes_to_none():
    assert decode_access_token("not.a.jwt") is None


def test_user_read_hides_github_token():
    user = make_user(github_token="ghp_secret")

    data = UserRead.model_validate(user).model_dump()

    assert "github_token" not in data
    assert data["github_connected"] is True
