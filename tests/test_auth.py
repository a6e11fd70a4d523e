"""Tests for shared-secret and hash verification."""

import hashlib

import pytest

from conftest import SECRET
from core.auth import (
    compute_request_hash,
    constant_time_equals,
    derive_dynamic_secret,
    parse_timestamp,
    verify_relay_auth,
)
from core.constants import AuthMode
from core.exceptions import AuthenticationError, ConfigurationError
from schemas.relay import RelayFields

MESSAGES = '[{"role":"user","content":"hi"}]'
NOW = 1_750_000_000


def _fields(shared_secret: str, timestamp: str | None = None, hash_value=None):
    expected = hash_value or compute_request_hash(MESSAGES, shared_secret)
    return RelayFields(
        messages=MESSAGES,
        hash=expected,
        shared_secret=shared_secret,
        timestamp=timestamp,
    )


def test_request_hash_is_md5_of_messages_plus_secret():
    expected = hashlib.md5((MESSAGES + "abc").encode()).hexdigest()
    assert compute_request_hash(MESSAGES, "abc") == expected


def test_constant_time_equals_handles_length_mismatch():
    assert constant_time_equals("same", "same") is True
    assert constant_time_equals("short", "much longer value") is False


def test_legacy_secret_is_accepted():
    result = verify_relay_auth(_fields(SECRET), base_secret=SECRET, now=NOW)
    assert result.mode is AuthMode.LEGACY
    assert result.expected_secret == SECRET


def test_dynamic_secret_is_accepted_within_tolerance():
    ts = str(NOW - 120)
    secret = derive_dynamic_secret(SECRET, ts)
    result = verify_relay_auth(_fields(secret, ts), base_secret=SECRET, now=NOW)
    assert result.mode is AuthMode.DYNAMIC
    assert result.expected_secret == f"{SECRET}_{ts}"


def test_future_timestamp_within_tolerance_is_accepted():
    ts = str(NOW + 300)
    secret = derive_dynamic_secret(SECRET, ts)
    result = verify_relay_auth(_fields(secret, ts), base_secret=SECRET, now=NOW)
    assert result.mode is AuthMode.DYNAMIC


def test_expired_timestamp_is_rejected():
    ts = str(NOW - 301)
    secret = derive_dynamic_secret(SECRET, ts)
    with pytest.raises(AuthenticationError) as exc_info:
        verify_relay_auth(_fields(secret, ts), base_secret=SECRET, now=NOW)
    assert exc_info.value.message == "Request timestamp expired"
    assert exc_info.value.status_code == 401


def test_unparseable_timestamp_is_rejected():
    secret = derive_dynamic_secret(SECRET, "yesterday")
    with pytest.raises(AuthenticationError) as exc_info:
        verify_relay_auth(_fields(secret, "yesterday"), base_secret=SECRET, now=NOW)
    assert exc_info.value.message == "Invalid timestamp"


def test_timestamp_without_separator_falls_back_to_legacy():
    result = verify_relay_auth(
        _fields(SECRET.replace("-", ""), str(NOW)),
        base_secret=SECRET.replace("-", ""),
        now=NOW,
    )
    assert result.mode is AuthMode.LEGACY


def test_dynamic_secret_for_another_timestamp_is_rejected():
    ts = str(NOW)
    secret = derive_dynamic_secret(SECRET, NOW - 10)
    with pytest.raises(AuthenticationError) as exc_info:
        verify_relay_auth(_fields(secret, ts), base_secret=SECRET, now=NOW)
    assert exc_info.value.message == "Invalid authentication"


def test_wrong_secret_is_rejected():
    with pytest.raises(AuthenticationError):
        verify_relay_auth(_fields("not-the-secret"), base_secret=SECRET, now=NOW)


def test_wrong_hash_is_rejected():
    fields = _fields(SECRET, hash_value="0" * 32)
    with pytest.raises(AuthenticationError) as exc_info:
        verify_relay_auth(fields, base_secret=SECRET, now=NOW)
    assert exc_info.value.message == "Invalid authentication"


def test_hash_in_dynamic_mode_covers_the_dynamic_secret():
    ts = str(NOW)
    secret = derive_dynamic_secret(SECRET, ts)
    # Signed with the base secret instead of the timestamped one
    fields = _fields(secret, ts, hash_value=compute_request_hash(MESSAGES, SECRET))
    with pytest.raises(AuthenticationError):
        verify_relay_auth(fields, base_secret=SECRET, now=NOW)


def test_missing_base_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        verify_relay_auth(_fields(SECRET), base_secret="", now=NOW)
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Server configuration error"


def test_parse_timestamp_reads_leading_integer():
    assert parse_timestamp("1750000000") == 1750000000
    assert parse_timestamp(" 1750000000.75") == 1750000000
    assert parse_timestamp("-5") == -5
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp("") is None


def test_fractional_timestamp_is_accepted_with_raw_text_secret():
    ts = f"{NOW - 10}.5"
    secret = derive_dynamic_secret(SECRET, ts)
    result = verify_relay_auth(_fields(secret, ts), base_secret=SECRET, now=NOW)
    assert result.mode is AuthMode.DYNAMIC
    assert result.expected_secret == f"{SECRET}_{ts}"
