"""Premium status lookup and the limits it unlocks."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from limits import WorkoutLimits, WorkoutLimitService
from models import SubscriptionDB
from ports import PremiumStatus, PremiumStatusSource
from timeutils import Clock, UTCDateTime, utcnow

NO_SUBSCRIPTION = "none"


class Subscription(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    product_id: str
    purchase_token: str
    status: str  # active, expired, canceled, pending
    expiry_date: UTCDateTime
    acknowledged: bool = False

    def is_active(self, now: datetime | None = None) -> bool:
        return self.status == "active" and self.expiry_date > (now or utcnow())


class SubscriptionPremiumStatusSource:
    """Reads premium status from the latest stored subscription row."""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def find_latest(self, user_id: UUID) -> Subscription | None:
        row = (
            self.db.query(SubscriptionDB)
            .filter(SubscriptionDB.user_id == user_id)
            .order_by(SubscriptionDB.created_at.desc())
            .first()
        )
        return Subscription.model_validate(row) if row else None

    def check_status(self, user_id: UUID) -> PremiumStatus:
        subscription = self.find_latest(user_id)
        if subscription is None:
            return PremiumStatus(is_premium=False, status=NO_SUBSCRIPTION)

        return PremiumStatus(
            is_premium=subscription.is_active(self.clock()),
            status=subscription.status,
            expiry_date=subscription.expiry_date,
        )


class CheckPremiumStatusInput(BaseModel):
    user_id: UUID


class CheckPremiumStatus:
    def __init__(self, premium_source: PremiumStatusSource):
        self.premium_source = premium_source

    def execute(self, input: CheckPremiumStatusInput) -> PremiumStatus:
        return self.premium_source.check_status(input.user_id)


class GetUserLimitsInput(BaseModel):
    user_id: UUID


class GetUserLimitsOutput(BaseModel):
    is_premium: bool
    limits: WorkoutLimits
    summary: dict[str, str]


class GetUserLimits:
    def __init__(
        self,
        premium_source: PremiumStatusSource,
        limit_service: WorkoutLimitService,
    ):
        self.premium_source = premium_source
        self.limit_service = limit_service

    def execute(self, input: GetUserLimitsInput) -> GetUserLimitsOutput:
        status = self.premium_source.check_status(input.user_id)
        limits = self.limit_service.get_limits_for_user(status.is_premium)
        return GetUserLimitsOutput(
            is_premium=status.is_premium,
            limits=limits,
            summary=limits.summary(),
        )
