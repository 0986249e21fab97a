"""
Subscription tiers: the limits every quota check reads, plus the admin catalogue operations.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cloud_variables.core.errors import ConflictError, NotFoundError, UnavailableError
from cloud_variables.core.tier_limits import DEFAULT_TIERS, TIER_DESCRIPTIONS
from cloud_variables.models.tier import Tier

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "name",
    "description",
    "max_variables",
    "max_variable_size_mb",
    "max_requests_per_day",
    "max_api_keys",
    "price_monthly",
    "is_active",
)


class TierService:
    def __init__(self, db: Session, default_tier_name: str = "free"):
        self.db = db
        self.default_tier_name = default_tier_name

    def get(self, tier_id: int) -> Tier:
        tier = self.db.query(Tier).filter(Tier.id == tier_id).first()
        if not tier:
            raise NotFoundError("Tier not found")
        return tier

    def get_default_tier(self) -> Tier:
        """
        The tier assigned at registration: the configured tier name if it is active and free,
        otherwise the first active tier priced at 0.
        """
        tier = self.db.query(Tier).filter(
            Tier.name == self.default_tier_name,
            Tier.is_active.is_(True),
            Tier.price_monthly == 0,
        ).first()
        if tier:
            return tier

        tier = (
            self.db.query(Tier)
            .filter(Tier.is_active.is_(True), Tier.price_monthly == 0)
            .order_by(Tier.id)
            .first()
        )
        if not tier:
            logger.error("No active free tier configured; registrations cannot proceed")
            raise UnavailableError("Default tier not configured")
        return tier

    def list(self, include_inactive: bool = True) -> List[Tier]:
        query = self.db.query(Tier)
        if not include_inactive:
            query = query.filter(Tier.is_active.is_(True))
        return query.order_by(Tier.price_monthly, Tier.id).all()

    def create(
        self,
        name: str,
        max_variables: int,
        max_variable_size_mb: int,
        max_requests_per_day: int,
        max_api_keys: int,
        price_monthly: int = 0,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> Tier:
        tier = Tier(
            name=name,
            description=description,
            max_variables=max_variables,
            max_variable_size_mb=max_variable_size_mb,
            max_requests_per_day=max_requests_per_day,
            max_api_keys=max_api_keys,
            price_monthly=price_monthly,
            is_active=is_active,
        )
        self.db.add(tier)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Tier '{name}' already exists") from e
        self.db.refresh(tier)
        logger.info("Created tier %s (id=%s)", tier.name, tier.id)
        return tier

    def update(self, tier_id: int, **changes) -> Tier:
        tier = self.get(tier_id)
        for field in _UPDATABLE_FIELDS:
            value = changes.get(field)
            if value is not None:
                setattr(tier, field, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("A tier with that name already exists") from e
        self.db.refresh(tier)
        return tier

    def delete(self, tier_id: int) -> None:
        tier = self.get(tier_id)
        try:
            self.db.delete(tier)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Tier is still referenced by users or promotion history") from e
        logger.info("Deleted tier id=%s", tier_id)

    def seed_default_tiers(self) -> int:
        """Insert the default catalogue into an empty tiers table. Returns the number inserted."""
        if self.db.query(Tier).count() > 0:
            return 0
        for name, limits in DEFAULT_TIERS.items():
            self.db.add(Tier(name=name, description=TIER_DESCRIPTIONS.get(name), **limits))
        self.db.commit()
        logger.info("Seeded %d default tiers", len(DEFAULT_TIERS))
        return len(DEFAULT_TIERS)
