from typing import Dict

# Tier catalogue seeded into an empty tiers table at startup.
# The price-0 tier is the default assigned at registration; exactly one must exist.
DEFAULT_TIERS: Dict[str, Dict[str, int]] = {
    "free": {
        "max_variables": 10,
        "max_variable_size_mb": 1,
        "max_requests_per_day": 1000,
        "max_api_keys": 2,
        "price_monthly": 0,  # cents
    },
    "pro": {
        "max_variables": 1000,
        "max_variable_size_mb": 10,
        "max_requests_per_day": 100000,
        "max_api_keys": 10,
        "price_monthly": 999,
    },
    "enterprise": {
        "max_variables": 100000,
        "max_variable_size_mb": 100,
        "max_requests_per_day": 10000000,
        "max_api_keys": 100,
        "price_monthly": 9999,
    },
}

TIER_DESCRIPTIONS: Dict[str, str] = {
    "free": "Free tier with basic limits",
    "pro": "Professional tier for growing projects",
    "enterprise": "Enterprise tier with high limits",
}


def get_tier_limit(tier_name: str, limit_type: str) -> int:
    """Get the catalogue value for a specific tier and limit type."""
    return DEFAULT_TIERS.get(tier_name, DEFAULT_TIERS["free"]).get(limit_type, 0)
