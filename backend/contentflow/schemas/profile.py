"""Profile and entitlement schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel

from contentflow.models.profile import PlanName


class ProfileResponse(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str | None = None
    plan: PlanName
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SchedulingPermissions(BaseModel):
    can_schedule: bool
    can_bulk_schedule: bool
    can_optimal_timing: bool


class MediaPermissions(BaseModel):
    can_upload_advanced: bool
    can_use_ai_generation: bool
    max_images: int
    max_video_size: int


class FeatureAccess(BaseModel):
    can_access_analytics: bool
    can_use_team_features: bool
    can_export_data: bool


class PermissionsResponse(BaseModel):
    current_plan: PlanName
    is_premium: bool
    is_free: bool
    scheduling: SchedulingPermissions
    media: MediaPermissions
    feature_access: FeatureAccess
