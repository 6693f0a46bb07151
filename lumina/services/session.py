"""
SessionManager - Keeps the signed-in profile in step with the identity provider.
"""

import logging
from typing import Callable, Optional

from lumina.auth import AuthSession, IdentityProvider, SessionEvent
from lumina.errors import NotFound
from lumina.schemas import User

from .learner import LearnerService

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Track the current user across sign-in and sign-out.

    Each sign-in loads the profile and credits the day's login activity
    to students.
    """

    def __init__(self, identity: IdentityProvider, learner: LearnerService):
        self.identity = identity
        self.learner = learner
        self.current_user: Optional[User] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def start(self) -> Optional[User]:
        """Restore an existing session and start listening for changes."""
        session = await self.identity.get_current_session()
        if session is not None:
            await self._signed_in(session)
        if self._unsubscribe is None:
            self._unsubscribe = self.identity.on_session_change(self._on_change)
        return self.current_user

    def stop(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_change(self, event: SessionEvent, session: Optional[AuthSession]):
        if event == SessionEvent.SIGNED_IN and session is not None:
            await self._signed_in(session)
        elif event == SessionEvent.SIGNED_OUT:
            self.current_user = None

    async def _signed_in(self, session: AuthSession):
        try:
            profile = await self.learner.repository.get_profile(session.user_id)
        except NotFound:
            logger.warning("No profile for signed-in user %s", session.user_id)
            self.current_user = None
            return
        self.current_user = await self.learner.record_login(profile)
