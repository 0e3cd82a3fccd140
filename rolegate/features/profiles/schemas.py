"""
Pydantic schemas for the active profile.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from rolegate.features.catalog.schemas import ProfileResponse
from rolegate.features.profiles.controller import ProfileStatus


class ProfileStateResponse(BaseModel):
    """Active profile and the profiles the user may switch to."""
    status: ProfileStatus
    active_profile: Optional[ProfileResponse] = None
    available_profiles: List[ProfileResponse] = []


class SwitchProfileRequest(BaseModel):
    profile: str = Field(..., description="Value of the profile to act as")


class ProfileCheckResponse(BaseModel):
    profile: str
    active: bool
