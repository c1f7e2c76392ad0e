"""Owner profile fields and email verification."""

import logging
import random
import secrets
from datetime import datetime
from typing import Callable, Optional

from unseen.engine.aura import AuraEngine
from unseen.engine.models import AuraState, EngineState, OwnerProfile

logger = logging.getLogger(__name__)

ALIAS_PREFIXES = ["Signal", "Rook", "North", "Quiet", "Cipher", "Vector", "Obsidian", "Drift", "Trace", "Echo"]
ALIAS_SUFFIXES = ["Vigil", "Line", "Shade", "Weld", "Pulse", "Hollow", "Arc", "Ward", "Null", "Strand"]


def generate_alias() -> str:
    return f"{random.choice(ALIAS_PREFIXES)}{random.choice(ALIAS_SUFFIXES)}-{random.randint(100, 999)}"


def generate_verification_code() -> str:
    return str(100000 + secrets.randbelow(900000))


class ProfileManager:
    def __init__(self, state: EngineState, aura: AuraEngine, clock: Callable[[], datetime]) -> None:
        self.state = state
        self.aura = aura
        self.clock = clock

    @property
    def profile(self) -> OwnerProfile:
        return self.state.profile

    def complete_onboarding(self, name: str, email: str, focus_area: str) -> OwnerProfile:
        """Start a fresh profile. Aura starts from zero."""
        profile = OwnerProfile(
            name=name,
            email=email.strip(),
            public_alias=generate_alias(),
            focus_area=focus_area,
            join_date=self.clock().date(),
        )
        self.state.commit(profile=profile, aura=AuraState())
        logger.info("Onboarding complete for %s", self.state.owner_id)
        return profile

    def update(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        focus_area: Optional[str] = None,
        public_alias: Optional[str] = None,
    ) -> OwnerProfile:
        current = self.profile
        updates: dict = {}
        if name is not None:
            updates["name"] = name
        if focus_area is not None:
            updates["focus_area"] = focus_area
        if public_alias:
            updates["public_alias"] = public_alias.lower()
        if email is not None:
            email = email.strip()
            updates["email"] = email
            # A new address must be verified again
            if email != current.email:
                updates.update(email_verified=False, verification_code="", verification_sent_at=None)
                logger.info("Email changed for %s; verification revoked", self.state.owner_id)

        profile = current.model_copy(update=updates)
        self.state.commit(profile=profile)
        return profile

    def set_verification_challenge(self, code: Optional[str] = None) -> str:
        code = code or generate_verification_code()
        self.state.commit(profile=self.profile.model_copy(update={
            "verification_code": code,
            "verification_sent_at": self.clock(),
        }))
        return code

    def clear_verification_challenge(self) -> None:
        self.state.commit(profile=self.profile.model_copy(update={
            "verification_code": "",
            "verification_sent_at": None,
        }))

    def confirm_verification_code(self, code: str) -> bool:
        candidate = (code or "").strip()
        if not candidate or candidate != self.profile.verification_code:
            logger.warning("Verification code rejected for %s", self.state.owner_id)
            return False
        self.mark_verified()
        return True

    def mark_verified(self) -> None:
        self.state.commit(profile=self.profile.model_copy(update={
            "email_verified": True,
            "verification_code": "",
            "verification_sent_at": None,
        }))
        self.aura.seed_history()
        logger.info("Owner %s verified", self.state.owner_id)
