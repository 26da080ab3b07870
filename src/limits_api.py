"""REST API endpoints for premium status and plan limits."""

from fastapi import APIRouter, Depends

from auth import AuthenticatedUser, get_or_create_user
from dependencies import get_limit_service, get_premium_source
from limits import WorkoutLimitService
from ports import PremiumStatus, PremiumStatusSource
from premium import (
    CheckPremiumStatus,
    CheckPremiumStatusInput,
    GetUserLimits,
    GetUserLimitsInput,
    GetUserLimitsOutput,
)

router = APIRouter(prefix="/api/v1/limits", tags=["limits"])


@router.get("", response_model=GetUserLimitsOutput)
def get_user_limits(
    user: AuthenticatedUser = Depends(get_or_create_user),
    premium_source: PremiumStatusSource = Depends(get_premium_source),
    limit_service: WorkoutLimitService = Depends(get_limit_service),
) -> GetUserLimitsOutput:
    """Return the limits of the user's tier with a readable summary."""
    return GetUserLimits(premium_source, limit_service).execute(
        GetUserLimitsInput(user_id=user.user_id)
    )


@router.get("/premium-status", response_model=PremiumStatus)
def get_premium_status(
    user: AuthenticatedUser = Depends(get_or_create_user),
    premium_source: PremiumStatusSource = Depends(get_premium_source),
) -> PremiumStatus:
    return CheckPremiumStatus(premium_source).execute(
        CheckPremiumStatusInput(user_id=user.user_id)
    )
