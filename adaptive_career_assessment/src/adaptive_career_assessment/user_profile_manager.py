"""
User Profile Manager

Stores AI skill profiles (the `user_profiles` table) together with the raw
text the user entered, so assessments can later be linked to a profile.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from adaptive_career_assessment.assessment_state import SkillProfile

logger = logging.getLogger(__name__)

PROFILES_TABLE = "user_profiles"


@dataclass
class ProfileInput:
    """Free-text background submitted for profiling."""
    name: Optional[str] = None
    experience: Optional[str] = None
    skills: Optional[str] = None
    goals: Optional[str] = None

    def is_empty(self) -> bool:
        """Profiling needs at least experience or skills."""
        return not any((text or "").strip() for text in (self.experience, self.skills))


class UserProfileManager:
    """
    Persists skill profiles.

    Falls back to in-memory storage when no Supabase client is given.
    """

    def __init__(self, supabase_client=None):
        """
        Initialize UserProfileManager.

        Args:
            supabase_client: Supabase client instance (optional)
        """
        self.supabase = supabase_client
        self.use_supabase = supabase_client is not None
        self._in_memory_profiles: Dict[str, Dict[str, Any]] = {}

        if not self.use_supabase:
            logger.warning("⚠️ [UserProfileManager] Supabase not available, using in-memory fallback")

    def _profile_row(self, session_id: str, inputs: ProfileInput, profile: SkillProfile) -> Dict[str, Any]:
        return {
            "session_id": session_id,
            "full_name": inputs.name,
            "experience_text": inputs.experience,
            "skills_text": inputs.skills,
            "goals_text": inputs.goals,
            "ai_extracted_skills": profile.extracted_skills,
            "skill_levels": profile.skill_levels,
            "career_trajectory": profile.career_trajectory,
            "career_cluster": profile.career_cluster,
            "skill_vector": profile.skill_vector,
            "ai_confidence": profile.ai_confidence,
            "raw_ai_response": profile.to_dict(),
        }

    async def save_profile(
        self,
        session_id: str,
        inputs: ProfileInput,
        profile: SkillProfile
    ) -> Optional[str]:
        """
        Save an analysed profile.

        Args:
            session_id: Client session token the profile belongs to
            inputs: The text the profile was extracted from
            profile: AI-extracted profile

        Returns:
            Record id, or None if the save failed
        """
        row = self._profile_row(session_id, inputs, profile)

        if not self.use_supabase:
            record_id = str(uuid.uuid4())
            now = datetime.now(timezone.utc).isoformat()
            self._in_memory_profiles[record_id] = {**row, "id": record_id, "created_at": now, "updated_at": now}
            return record_id

        try:
            result = self.supabase.table(PROFILES_TABLE).insert(row).execute()
            if result.data:
                record_id = result.data[0].get("id")
                logger.info(f"✅ [UserProfileManager] Saved profile {record_id} ({profile.career_cluster or 'no cluster'})")
                return record_id
            logger.warning("⚠️ [UserProfileManager] Insert returned no data")
            return None
        except Exception as e:
            logger.error(f"❌ [UserProfileManager] Error saving profile: {e}", exc_info=True)
            return None

    async def get_profile(self, profile_id: str) -> Optional[Dict[str, Any]]:
        """Load a saved profile record."""
        if not self.use_supabase:
            profile = self._in_memory_profiles.get(profile_id)
            return dict(profile) if profile else None

        try:
            result = self.supabase.table(PROFILES_TABLE) \
                .select("*") \
                .eq("id", profile_id) \
                .execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"❌ [UserProfileManager] Error loading profile: {e}")
            return None
