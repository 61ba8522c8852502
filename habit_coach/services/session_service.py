"""Owner session: tracks the signed-in owner and their loaded habits."""

import logging

from habit_coach.core.errors import InvalidOwnerError
from habit_coach.core.logging import span
from habit_coach.core.storage import validate_owner_id
from habit_coach.domain.habit import Habit
from habit_coach.services.habit_service import HabitStore


logger = logging.getLogger(__name__)


class OwnerSession:
    """Scopes habit access to the currently authenticated owner.

    Every sign-in or sign-out transition discards the habits loaded for the previous
    owner. A load that was started for one owner never fills the cache of another.
    """

    def __init__(self, store: HabitStore) -> None:
        self._store = store
        self._owner_id: str | None = None
        self._habits: list[Habit] = []
        self._generation = 0

    @property
    def owner_id(self) -> str | None:
        """Owner currently signed in, or None."""
        return self._owner_id

    @property
    def habits(self) -> list[Habit]:
        """Habits loaded for the current owner."""
        return list(self._habits)

    def require_owner(self) -> str:
        """Return the signed-in owner id.

        Raises:
            InvalidOwnerError: If nobody is signed in
        """
        if self._owner_id is None:
            raise InvalidOwnerError("No owner is signed in")
        return self._owner_id

    def _transition(self, owner_id: str | None) -> None:
        previous = self._owner_id
        self._owner_id = owner_id
        self._habits = []
        self._generation += 1
        logger.info(
            "Owner session changed",
            extra={"previous_owner_id": previous, "owner_id": owner_id, "generation": self._generation},
        )

    def sign_in(self, owner_id: str) -> None:
        """Switch the session to owner_id."""
        self._transition(validate_owner_id(owner_id))

    def sign_out(self) -> None:
        """Drop the current owner and any loaded habits."""
        self._transition(None)

    async def load(self) -> list[Habit]:
        """Load the current owner's habits into the session.

        Returns an empty list when signed out.
        """
        with span("session_service.load"):
            if self._owner_id is None:
                self._habits = []
                return []

            owner_id = self._owner_id
            generation = self._generation
            habits = await self._store.list_habits(owner_id)

            if generation != self._generation:
                logger.info("Discarding habits loaded for a previous owner", extra={"owner_id": owner_id})
                return self.habits

            self._habits = habits
            return self.habits

    async def refresh(self) -> list[Habit]:
        """Reload habits after a mutation."""
        return await self.load()
