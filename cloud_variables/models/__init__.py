from cloud_variables.models.tier import Tier
from cloud_variables.models.user import User, UserRole
from cloud_variables.models.variable import Variable
from cloud_variables.models.api_key import ApiKey
from cloud_variables.models.promotion import PromotionHistory
from cloud_variables.models.usage_stats import UsageStats

__all__ = [
    "Tier",
    "User",
    "UserRole",
    "Variable",
    "ApiKey",
    "PromotionHistory",
    "UsageStats",
]
