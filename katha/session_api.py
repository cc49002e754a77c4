"""
Session offering API module for the marketplace backend
Fetches the coach's offerings and creates, updates and deletes them
"""

import logging
from typing import Dict, Any, List, Optional

from katha.api_client import KathaAPIClient, get_api_client
from katha.models import SessionOffering

logger = logging.getLogger(__name__)

PROFILE_ENDPOINT = "coach-profile/profile"
SESSIONS_ENDPOINT = "coach-profile/sessions"


def extract_sessions(profile: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Pull the nested session list out of a coach profile response.

    The backend answers with {"user": {"CoachProfile": {"sessions": [...]}}};
    a missing profile or session list yields an empty list.
    """
    if not isinstance(profile, dict):
        return []
    user = profile.get("user", profile)
    coach_profile = (user or {}).get("CoachProfile") or (user or {}).get("coachProfile")
    if coach_profile is None:
        coach_profile = user
    sessions = (coach_profile or {}).get("sessions")
    return sessions if isinstance(sessions, list) else []


class CoachSessionsAPI:
    """The backend calls consumed by the session editor"""

    def __init__(self, client: Optional[KathaAPIClient] = None):
        self.client = client or get_api_client()

    def fetch_sessions(self) -> List[SessionOffering]:
        """
        Fetch the coach profile and return its session offerings

        Raises:
            APIError: If the profile could not be fetched
        """
        profile = self.client.get(PROFILE_ENDPOINT)
        offerings = [SessionOffering.from_api(item) for item in extract_sessions(profile)]
        logger.info(f"Fetched {len(offerings)} session offering(s)")
        return offerings

    def create_session(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Create a session offering; payload must not contain an id"""
        logger.info(f"Creating session offering: title={payload.get('title')!r}")
        return self.client.post(SESSIONS_ENDPOINT, payload)

    def update_session(
        self, offering_id: str, payload: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Replace a session offering with the given payload"""
        logger.info(f"Updating session offering {offering_id}")
        return self.client.put(f"{SESSIONS_ENDPOINT}/{offering_id}", payload)

    def delete_session(self, offering_id: str) -> None:
        """Delete a session offering"""
        logger.info(f"Deleting session offering {offering_id}")
        self.client.delete(f"{SESSIONS_ENDPOINT}/{offering_id}")
