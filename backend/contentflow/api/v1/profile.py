"""Profile API - current profile and plan entitlements."""
from fastapi import APIRouter, Depends

from contentflow.dependencies import get_current_permissions, get_current_user
from contentflow.models.profile import Profile
from contentflow.schemas.common import APIResponse
from contentflow.schemas.profile import PermissionsResponse, ProfileResponse

router = APIRouter()


# GET /profile
@router.get("", response_model=APIResponse)
async def get_profile(current_user: Profile = Depends(get_current_user)):
    return APIResponse(
        status="success",
        data=ProfileResponse.model_validate(current_user).model_dump(mode="json"),
    )


# GET /profile/permissions
@router.get("/permissions", response_model=APIResponse)
async def get_profile_permissions(permissions: PermissionsResponse = Depends(get_current_permissions)):
    return APIResponse(status="success", data=permissions.model_dump(mode="json"))
