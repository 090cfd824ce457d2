from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from insulin_calc.models.profile import Profile
from insulin_calc.models.settings import AppSettings


@dataclass
class ProfileDraft:
    """An in-progress create or edit; not part of the profile set until saved."""

    profile: Profile
    is_new: bool


@dataclass
class AppState:
    profiles: list[Profile] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)
    active_profile_id: Optional[str] = None
    draft: Optional[ProfileDraft] = None

    def get_profile(self, profile_id: Optional[str]) -> Optional[Profile]:
        if profile_id is None:
            return None
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None

    @property
    def active_profile(self) -> Optional[Profile]:
        return self.get_profile(self.active_profile_id)
