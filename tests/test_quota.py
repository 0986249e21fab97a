from __future__ import annotations

from types import SimpleNamespace

import pytest

from cloud_variables.core.errors import QuotaExceededError, RateLimitExceededError
from cloud_variables.core.quota import (
    BYTES_PER_MB,
    can_create_api_key,
    can_create_variable,
    check_variable_limit,
    enforce_api_key_limit,
    enforce_rate_limit,
    enforce_variable_limit,
    is_within_rate_limit,
    is_within_size_limit,
    size_in_mb,
)
from cloud_variables.core.tier_limits import DEFAULT_TIERS, get_tier_limit


@pytest.fixture
def tier():
    return SimpleNamespace(
        max_variables=10,
        max_variable_size_mb=1,
        max_requests_per_day=1000,
        max_api_keys=2,
    )


def test_variable_count_limit_is_exclusive(tier) -> None:
    assert can_create_variable(9, tier)
    assert not can_create_variable(10, tier)
    assert not can_create_variable(11, tier)


def test_api_key_count_limit_is_exclusive(tier) -> None:
    assert can_create_api_key(1, tier)
    assert not can_create_api_key(2, tier)


def test_size_limit_is_inclusive(tier) -> None:
    assert is_within_size_limit(size_in_mb(BYTES_PER_MB), tier)
    assert not is_within_size_limit(size_in_mb(BYTES_PER_MB + 1), tier)
    assert is_within_size_limit(0, tier)


def test_rate_limit(tier) -> None:
    assert is_within_rate_limit(999, tier)
    assert not is_within_rate_limit(1000, tier)


def test_check_variable_limit_message_cites_limit(tier) -> None:
    assert check_variable_limit(0, tier) == (True, "")
    allowed, message = check_variable_limit(10, tier)
    assert not allowed
    assert message == "Maximum 10 variables allowed"


def test_enforce_raises_quota_errors(tier) -> None:
    enforce_variable_limit(0, tier)
    with pytest.raises(QuotaExceededError, match="Maximum 10 variables"):
        enforce_variable_limit(10, tier)
    with pytest.raises(QuotaExceededError, match="Maximum 2 API keys"):
        enforce_api_key_limit(2, tier)
    with pytest.raises(RateLimitExceededError) as exc_info:
        enforce_rate_limit(1000, tier)
    assert exc_info.value.status_code == 429


def test_default_catalogue_has_exactly_one_free_tier() -> None:
    free = [name for name, limits in DEFAULT_TIERS.items() if limits["price_monthly"] == 0]
    assert free == ["free"]
    assert get_tier_limit("pro", "max_variables") == 1000
    assert get_tier_limit("unknown", "max_api_keys") == DEFAULT_TIERS["free"]["max_api_keys"]
