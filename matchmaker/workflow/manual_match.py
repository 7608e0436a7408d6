"""
Manual match initiator - resolve a typed name to a profile and create a mutual match.
"""
import logging
from enum import Enum
from typing import Callable, Optional

from ..client.base import MatchService, ProfileDirectory
from ..config import get_config
from ..errors import (
    AlreadyMatchedError,
    CollaboratorError,
    MatchCreationError,
    MatchmakerError,
    OperationInProgressError,
    ProfileNotFoundError,
    SelfMatchError,
)
from ..models.match import MatchCandidate, MatchEdge
from .debounce import LatestTaskRunner


logger = logging.getLogger(__name__)


class MatchState(str, Enum):
    """Progress of one match attempt."""
    IDLE = "idle"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND = "not_found"
    CREATING = "creating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ManualMatchInitiator:
    """
    Lets an administrator match one persisted profile with another by name.

    Typing schedules a debounced suggestion search (last query wins).
    Creating a match uses the selected suggestion, or searches once more and
    takes the first profile whose name contains the typed text. Only one
    creation may be in flight at a time.
    """

    def __init__(
        self,
        profile_id: str,
        directory: ProfileDirectory,
        matches: MatchService,
        on_matched: Optional[Callable[[MatchCandidate], None]] = None,
        debounce_seconds: Optional[float] = None,
        min_query_length: Optional[int] = None,
        max_suggestions: Optional[int] = None,
    ):
        config = get_config().match
        self.profile_id = profile_id
        self.directory = directory
        self.matches = matches
        self.on_matched = on_matched
        self.min_query_length = config.min_query_length if min_query_length is None else min_query_length
        self.max_suggestions = config.max_suggestions if max_suggestions is None else max_suggestions

        delay = config.debounce_seconds if debounce_seconds is None else debounce_seconds
        self._search = LatestTaskRunner(delay=delay)
        self._busy = False

        self.query = ""
        self.suggestions: list[MatchCandidate] = []
        self.selected: Optional[MatchCandidate] = None
        self.state = MatchState.IDLE
        self.last_error: Optional[str] = None
        self.last_message: Optional[str] = None
        self.search_error: Optional[str] = None

    @property
    def is_creating(self) -> bool:
        return self._busy

    def _set_search_state(self, state: MatchState) -> None:
        # Suggestion searches never override an attempt in progress
        if not self._busy:
            self.state = state

    def set_query(self, text: str) -> None:
        """
        Update the typed text. Clears any selection and, for queries long
        enough, schedules a suggestion search.
        """
        self.query = text
        self.selected = None
        term = text.strip()

        if len(term) < self.min_query_length:
            self._search.cancel()
            self.suggestions = []
            self._set_search_state(MatchState.IDLE)
            return

        self._set_search_state(MatchState.SEARCHING)
        self._search.schedule(
            lambda: self.directory.search_profiles(term, page=1),
            on_result=self._on_suggestions,
            on_error=self._on_search_error,
        )

    def _on_suggestions(self, candidates: list[MatchCandidate]) -> None:
        self.suggestions = list(candidates[: self.max_suggestions])
        self.search_error = None
        self._set_search_state(MatchState.FOUND if self.suggestions else MatchState.NOT_FOUND)

    def _on_search_error(self, error: Exception) -> None:
        self.suggestions = []
        self.search_error = str(error)
        logger.warning(f"[{self.profile_id}] Suggestion search failed: {error}")
        self._set_search_state(MatchState.NOT_FOUND)

    async def settle(self) -> None:
        """Wait for a pending suggestion search to finish."""
        await self._search.wait()

    def select(self, candidate: MatchCandidate) -> None:
        """Fix the target to a suggestion; creation will not search again."""
        self._search.cancel()
        self.selected = candidate
        self.query = candidate.display_name
        self.suggestions = []
        self._set_search_state(MatchState.FOUND)

    def reset(self) -> None:
        self._search.cancel()
        self.query = ""
        self.selected = None
        self.suggestions = []
        self._set_search_state(MatchState.IDLE)

    async def _resolve(self, text: str) -> MatchCandidate:
        """Search once at submission time and take the first name containing the text."""
        self.state = MatchState.SEARCHING
        try:
            candidates = await self.directory.search_profiles(text, page=1)
        except CollaboratorError:
            raise
        except Exception as e:
            raise CollaboratorError("search profiles", str(e)) from e

        target = next((c for c in candidates if c.name_contains(text)), None)
        if target is None:
            self.state = MatchState.NOT_FOUND
            raise ProfileNotFoundError(text)
        self.state = MatchState.FOUND
        return target

    async def _create(self, text: str) -> MatchCandidate:
        target = self.selected or await self._resolve(text)

        if target.profile_id == self.profile_id:
            raise SelfMatchError(self.profile_id)
        edge = MatchEdge(source_id=self.profile_id, target_id=target.profile_id)

        self.state = MatchState.CREATING
        logger.info(f"Creating match {edge.source_id} <-> {edge.target_id}")
        try:
            result = await self.matches.create_match(edge.source_id, edge.target_id)
        except CollaboratorError:
            raise
        except Exception as e:
            raise CollaboratorError("create match", str(e)) from e

        if not result.success:
            reason = result.error or "Failed to match"
            if result.already_matched or "already" in reason.lower():
                raise AlreadyMatchedError(result.error)
            raise MatchCreationError(reason)
        return target

    async def create_match(self) -> MatchCandidate:
        """
        Create a mutual match between this profile and the chosen target.

        Returns:
            The matched counterparty

        Raises:
            OperationInProgressError: Another creation is still running
            ProfileNotFoundError: Nothing typed, or no profile name contains the text
            SelfMatchError: The target is this profile (checked before any request)
            AlreadyMatchedError: The match service reports an existing match
            MatchCreationError: The match service refused for another reason
            CollaboratorError: Search or match request failed
        """
        if self._busy:
            raise OperationInProgressError("A match is already being created")

        text = self.query.strip()
        if not text and self.selected is None:
            raise ProfileNotFoundError(text)

        self._busy = True
        self._search.cancel()
        self.last_error = None
        self.last_message = None
        try:
            target = await self._create(text)
        except MatchmakerError as e:
            self.state = MatchState.FAILED
            self.last_error = str(e)
            logger.warning(f"[{self.profile_id}] Manual match failed: {e}")
            raise
        finally:
            self._busy = False

        self.query = ""
        self.selected = None
        self.suggestions = []
        self.state = MatchState.SUCCEEDED
        self.last_message = f"Matched with {target.display_name}"
        logger.info(f"[{self.profile_id}] {self.last_message}")

        if self.on_matched is not None:
            self.on_matched(target)
        return target
