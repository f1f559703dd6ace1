import pytest

from taskboard.auth import session
from taskboard.auth.session import issue_token, verify_token

SECRET = "s3cret"
NOW = 1_700_000_000


def _swap(ch: str) -> str:
    return "B" if ch == "A" else "A"


def test_issue_then_verify_returns_same_user():
    token = issue_token("user-123", SECRET, max_age=60, now=NOW)
    sess = verify_token(token, SECRET, now=NOW)
    assert sess is not None
    assert sess.user_id == "user-123"
    assert sess.expires_at == NOW + 60


def test_verify_uses_wall_clock_by_default():
    token = issue_token("u1", SECRET)
    sess = verify_token(token, SECRET)
    assert sess is not None and sess.user_id == "u1"


def test_expired_token_is_rejected_even_with_valid_signature():
    token = issue_token("u1", SECRET, max_age=60, now=NOW)
    assert verify_token(token, SECRET, now=NOW + 59) is not None
    assert verify_token(token, SECRET, now=NOW + 60) is None
    assert verify_token(token, SECRET, now=NOW + 24 * 3600) is None


def test_wrong_secret_is_rejected():
    token = issue_token("u1", SECRET, now=NOW)
    assert verify_token(token, "other-secret", now=NOW) is None


def test_every_altered_character_invalidates_token():
    token = issue_token("user-abc", SECRET, max_age=3600, now=NOW)
    # The final base64 character can carry unused padding bits, so it is skipped.
    for i in range(len(token) - 1):
        tampered = token[:i] + _swap(token[i]) + token[i + 1:]
        assert verify_token(tampered, SECRET, now=NOW) is None, f"position {i} accepted"


def test_truncated_and_garbage_tokens_are_rejected():
    token = issue_token("u1", SECRET, now=NOW)
    payload, _, _sig = token.rpartition(".")
    assert verify_token(payload, SECRET, now=NOW) is None
    assert verify_token(payload + ".", SECRET, now=NOW) is None
    assert verify_token("not-a-token", SECRET, now=NOW) is None


@pytest.mark.parametrize("token", ["", None])
def test_missing_token_is_no_session(token):
    assert verify_token(token, SECRET, now=NOW) is None


@pytest.mark.parametrize(
    "payload",
    [
        ["u1", NOW + 60],
        {"exp": NOW + 60},
        {"uid": "", "exp": NOW + 60},
        {"uid": 42, "exp": NOW + 60},
        {"uid": "u1"},
        {"uid": "u1", "exp": "tomorrow"},
        {"uid": "u1", "exp": True},
    ],
)
def test_correctly_signed_but_malformed_payload_is_rejected(payload):
    token = session._serializer(SECRET).dumps(payload)
    assert verify_token(token, SECRET, now=NOW) is None


def test_issue_requires_user_id():
    with pytest.raises(ValueError):
        issue_token("  ", SECRET)


def test_token_is_cookie_safe():
    token = issue_token("u1", SECRET, now=NOW)
    assert all(c.isalnum() or c in "-_." for c in token)


def test_signed_payload_that_is_not_json_is_rejected():
    s = session._serializer(SECRET)
    # Valid signature over base64("not-json"); decoding the payload fails.
    token = s.make_signer(s.salt).sign("bm90LWpzb24").decode("ascii")
    assert verify_token(token, SECRET, now=NOW) is None
