"""
Quota gate: stateless limit checks over a tier and freshly-read usage counts.

Nothing here touches the database or caches counts. Callers read the current counts, ask the
gate, and act. Count-then-act is not serialised per tenant, so two concurrent creates can both
pass and overshoot a limit by one; that relaxed guarantee is accepted.
"""
from typing import Protocol, Tuple

from cloud_variables.core.errors import QuotaExceededError, RateLimitExceededError

BYTES_PER_MB = 1024 * 1024


class TierLimits(Protocol):
    max_variables: int
    max_variable_size_mb: int
    max_requests_per_day: int
    max_api_keys: int


def size_in_mb(size_bytes: int) -> float:
    return size_bytes / BYTES_PER_MB


def can_create_variable(current_count: int, tier: TierLimits) -> bool:
    return current_count < tier.max_variables


def can_create_api_key(current_count: int, tier: TierLimits) -> bool:
    return current_count < tier.max_api_keys


def is_within_size_limit(size_mb: float, tier: TierLimits) -> bool:
    # Inclusive: a document of exactly the limit is allowed.
    return size_mb <= tier.max_variable_size_mb


def is_within_rate_limit(requests_today: int, tier: TierLimits) -> bool:
    return requests_today < tier.max_requests_per_day


def check_variable_limit(current_count: int, tier: TierLimits) -> Tuple[bool, str]:
    """
    Check if the tenant can create another variable.

    Returns:
        (is_allowed, error_message)
    """
    if can_create_variable(current_count, tier):
        return True, ""
    return False, f"Maximum {tier.max_variables} variables allowed"


def check_api_key_limit(current_count: int, tier: TierLimits) -> Tuple[bool, str]:
    if can_create_api_key(current_count, tier):
        return True, ""
    return False, f"Maximum {tier.max_api_keys} API keys allowed"


def check_rate_limit(requests_today: int, tier: TierLimits) -> Tuple[bool, str]:
    if is_within_rate_limit(requests_today, tier):
        return True, ""
    return False, (
        f"Daily request limit reached. Your tier allows {tier.max_requests_per_day} "
        f"requests per day."
    )


def enforce_variable_limit(current_count: int, tier: TierLimits) -> None:
    is_allowed, error_message = check_variable_limit(current_count, tier)
    if not is_allowed:
        raise QuotaExceededError(error_message)


def enforce_api_key_limit(current_count: int, tier: TierLimits) -> None:
    is_allowed, error_message = check_api_key_limit(current_count, tier)
    if not is_allowed:
        raise QuotaExceededError(error_message)


def enforce_rate_limit(requests_today: int, tier: TierLimits) -> None:
    is_allowed, error_message = check_rate_limit(requests_today, tier)
    if not is_allowed:
        raise RateLimitExceededError(error_message)
