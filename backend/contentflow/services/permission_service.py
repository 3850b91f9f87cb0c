"""Plan entitlements."""
from contentflow.models.profile import PlanName
from contentflow.schemas.profile import (
    FeatureAccess,
    MediaPermissions,
    PermissionsResponse,
    SchedulingPermissions,
)

SOLO_AND_ABOVE = {PlanName.SOLO, PlanName.STANDARD, PlanName.PREMIUM}
STANDARD_AND_ABOVE = {PlanName.STANDARD, PlanName.PREMIUM}


def get_permissions(plan: PlanName) -> PermissionsResponse:
    at_least_solo = plan in SOLO_AND_ABOVE
    at_least_standard = plan in STANDARD_AND_ABOVE
    is_premium = plan == PlanName.PREMIUM

    return PermissionsResponse(
        current_plan=plan,
        is_premium=is_premium,
        is_free=not at_least_solo,
        scheduling=SchedulingPermissions(
            can_schedule=at_least_standard,
            can_bulk_schedule=is_premium,
            can_optimal_timing=is_premium,
        ),
        media=MediaPermissions(
            can_upload_advanced=at_least_solo,
            can_use_ai_generation=at_least_standard,
            max_images=10 if is_premium else 8 if at_least_standard else 5 if at_least_solo else 1,
            max_video_size=500 if is_premium else 250 if at_least_standard else 100 if at_least_solo else 50,
        ),
        feature_access=FeatureAccess(
            can_access_analytics=at_least_standard,
            can_use_team_features=is_premium,
            can_export_data=at_least_solo,
        ),
    )
