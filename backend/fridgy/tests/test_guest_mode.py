from datetime import datetime, timedelta, timezone

import jwt

from fridgy.core.config import settings
from fridgy.core.security import ALGORITHM
from fridgy.guest_mode import (
    GuestModeData,
    can_perform_analysis,
    decode_guest_data,
    encode_guest_data,
    is_guest_analysis,
    register_analysis,
)


def test_default_data_has_full_quota():
    data = GuestModeData()
    assert data.remaining_requests == settings.GUEST_ANALYSIS_LIMIT
    assert data.analysis_ids == []
    assert can_perform_analysis(data)


def test_register_analysis_consumes_quota_until_exhausted():
    data = GuestModeData()
    for index in range(settings.GUEST_ANALYSIS_LIMIT):
        data = register_analysis(data, f"analysis-{index}")
        assert data is not None

    assert data.remaining_requests == 0
    assert data.last_request_time is not None
    assert is_guest_analysis(data, "analysis-0")
    assert not can_perform_analysis(data)
    assert register_analysis(data, "one-more") is None


def test_encoded_data_round_trips():
    data = register_analysis(GuestModeData(), "abc")
    decoded = decode_guest_data(encode_guest_data(data))
    assert decoded.remaining_requests == settings.GUEST_ANALYSIS_LIMIT - 1
    assert decoded.analysis_ids == ["abc"]


def test_tampered_token_gives_fresh_data():
    forged = jwt.encode(
        {"sub": "guest", "data": {"remaining_requests": 99}}, "not-the-secret", algorithm=ALGORITHM
    )
    assert decode_guest_data(forged).remaining_requests == settings.GUEST_ANALYSIS_LIMIT
    assert decode_guest_data("garbage").remaining_requests == settings.GUEST_ANALYSIS_LIMIT
    assert decode_guest_data(None).remaining_requests == settings.GUEST_ANALYSIS_LIMIT


def test_expired_or_foreign_tokens_give_fresh_data():
    expired = jwt.encode(
        {
            "sub": "guest",
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            "data": {"remaining_requests": 0},
        },
        settings.SECRET_KEY,
        algorithm=ALGORITHM,
    )
    access_token_shape = jwt.encode(
        {"sub": "some-user-id", "data": {"remaining_requests": 0}},
        settings.SECRET_KEY,
        algorithm=ALGORITHM,
    )
    assert decode_guest_data(expired).remaining_requests == settings.GUEST_ANALYSIS_LIMIT
    assert (
        decode_guest_data(access_token_shape).remaining_requests
        == settings.GUEST_ANALYSIS_LIMIT
    )
