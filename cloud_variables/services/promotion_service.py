import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from cloud_variables.core.errors import ValidationError
from cloud_variables.models.promotion import PromotionHistory
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.user_service import UserService

logger = logging.getLogger(__name__)


class PromotionService:
    """Admin tier changes. Every change is recorded; records are never edited afterwards."""

    def __init__(self, db: Session, users: UserService, tiers: TierService):
        self.db = db
        self.users = users
        self.tiers = tiers

    def promote(
        self,
        user_id: int,
        to_tier_id: int,
        promoted_by: int,
        reason: Optional[str] = None,
    ) -> PromotionHistory:
        user = self.users.get(user_id)
        tier = self.tiers.get(to_tier_id)
        if not tier.is_active:
            raise ValidationError("Cannot move a user to an inactive tier")
        if user.tier_id == tier.id:
            raise ValidationError("User is already on this tier")

        record = PromotionHistory(
            user_id=user.id,
            from_tier_id=user.tier_id,
            to_tier_id=tier.id,
            promoted_by=promoted_by,
            reason=reason,
        )
        user.tier_id = tier.id
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(
            "User id=%s moved from tier id=%s to %s by admin id=%s",
            user.id, record.from_tier_id, tier.name, promoted_by,
        )
        return record

    def history(self, user_id: int) -> List[PromotionHistory]:
        self.users.get(user_id)
        return (
            self.db.query(PromotionHistory)
            .filter(PromotionHistory.user_id == user_id)
            .order_by(PromotionHistory.created_at.desc(), PromotionHistory.id.desc())
            .all()
        )
