"""Per-session caller identity handed to every lifecycle operation."""
import uuid
from typing import Any

from pydantic import BaseModel, Field

from contentflow.models.profile import PlanName
from contentflow.schemas.profile import PermissionsResponse, ProfileResponse, SchedulingPermissions


class SessionContext(BaseModel):
    user_id: uuid.UUID
    access_token: str
    email: str | None = None
    full_name: str | None = None
    plan: PlanName = PlanName.FREE
    scheduling: SchedulingPermissions = Field(
        default_factory=lambda: SchedulingPermissions(
            can_schedule=False, can_bulk_schedule=False, can_optimal_timing=False,
        )
    )

    @property
    def can_schedule(self) -> bool:
        return self.scheduling.can_schedule

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def user_info(self) -> dict[str, Any]:
        return {"email": self.email, "name": self.full_name, "plan": self.plan.value}

    @classmethod
    def from_profile(
        cls,
        profile: ProfileResponse,
        permissions: PermissionsResponse,
        access_token: str,
    ) -> "SessionContext":
        return cls(
            user_id=profile.id,
            access_token=access_token,
            email=profile.email,
            full_name=profile.full_name,
            plan=permissions.current_plan,
            scheduling=permissions.scheduling,
        )
