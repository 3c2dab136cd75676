"""
Profile catalogue router.

GET /profiles — every built-in condition profile
"""
from fastapi import APIRouter

from skywatch.schemas.conditions import (
    ComfortRangeIn,
    FactorInfo,
    ProfileListResponse,
    ProfileResponse,
)
from skywatch.services.profiles import ConditionProfile, list_profiles, tolerance_label

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _profile_to_response(profile: ConditionProfile) -> ProfileResponse:
    comfort = None
    if profile.comfort_range is not None:
        comfort = ComfortRangeIn(min=profile.comfort_range[0], max=profile.comfort_range[1])
    return ProfileResponse(
        key=profile.key,
        name=profile.name,
        family=profile.family,
        comfort_range=comfort,
        tolerances={k: tolerance_label(v) for k, v in profile.tolerances.items()},
        factors=[FactorInfo.model_validate(f) for f in profile.factors],
    )


@router.get("", response_model=ProfileListResponse, summary="List condition profiles")
def get_profiles():
    items = [_profile_to_response(p) for p in list_profiles()]
    return ProfileListResponse(total=len(items), items=items)
