from datetime import UTC, datetime, timedelta
from uuid import uuid4

from identity_search.adapters.auth.crypto import JWTAuthAdapter


def test_password_hash_round_trip():
    adapter = JWTAuthAdapter(secret_key="test-secret")
    hashed = adapter.hash_password("correct-horse")

    assert hashed != "correct-horse"
    assert hashed.startswith("$argon2")
    assert adapter.verify_password("correct-horse", hashed) is True
    assert adapter.verify_password("wrong", hashed) is False


def test_empty_hash_never_verifies():
    assert JWTAuthAdapter(secret_key="test-secret").verify_password("", "") is False


def test_token_carries_identity_id():
    adapter = JWTAuthAdapter(secret_key="test-secret")
    identity_id = uuid4()

    token = adapter.create_token(identity_id, ttl_minutes=5)

    assert adapter.decode_token(token) == identity_id


def test_expired_token_rejected():
    adapter = JWTAuthAdapter(secret_key="test-secret")
    issued = datetime.now(UTC) - timedelta(hours=2)

    token = adapter.create_token(uuid4(), ttl_minutes=5, now_utc=issued)

    assert adapter.decode_token(token) is None


def test_token_from_other_secret_rejected():
    token = JWTAuthAdapter(secret_key="one").create_token(uuid4(), ttl_minutes=5)
    assert JWTAuthAdapter(secret_key="two").decode_token(token) is None


def test_garbage_token_rejected():
    assert JWTAuthAdapter(secret_key="test-secret").decode_token("not-a-jwt") is None
