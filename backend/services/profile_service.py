"""Profile use cases: account details and the monthly budget."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from backend.repositories.profiles_repository import ProfilesRepository
from shared.models import ProfileRecord, ProfileUpdateRequest


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProfileService:
    repository: ProfilesRepository

    def get_profile(self, user_id: str) -> ProfileRecord:
        return self.repository.get_profile(user_id)

    def update_profile(self, user_id: str, request: ProfileUpdateRequest) -> ProfileRecord:
        profile = self.repository.update_profile(user_id, request)
        logger.info(
            "profile_updated user_id=%s fields=%s",
            user_id,
            ",".join(sorted(request.model_dump(exclude_none=True))),
        )
        return profile

    def monthly_budget(self, user_id: str) -> Decimal:
        """Return the user's monthly budget, 0 when the profile does not exist yet."""

        try:
            return self.repository.get_profile(user_id).budget
        except ValueError:
            logger.info("profile_missing user_id=%s", user_id)
            return Decimal("0")
