"""
Shared fixtures: an in-memory backend standing in for the remote profile API.
"""
import asyncio
from collections import Counter
from typing import Any, Optional

import pytest

from matchmaker.client.base import ImageStore, MatchService, ProfileDirectory, ProfileService
from matchmaker.errors import CollaboratorError
from matchmaker.models.image import ImageAsset
from matchmaker.models.match import MatchCandidate, MatchEdge, MatchResult
from matchmaker.models.submission import ProfileSubmission, SubmissionConfirmation


class FakeBackend(ProfileService, ImageStore, ProfileDirectory, MatchService):
    """
    In-memory implementation of every collaborator.

    - `fail_next[op] = exc` makes the next call to `op` raise `exc`
    - `gates[op] = asyncio.Event()` holds calls to `op` until the event is set
    """

    def __init__(self):
        self.calls: Counter = Counter()
        self.fail_next: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}

        self.profiles: list[MatchCandidate] = []
        self.search_override: Optional[list[MatchCandidate]] = None
        self.search_delays: dict[str, float] = {}
        self.search_queries: list[str] = []

        self.images: dict[str, list[ImageAsset]] = {}
        self.reorder_payloads: list[list[str]] = []
        self._next_image = 0

        self.submissions: list[ProfileSubmission] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.edges: set[MatchEdge] = set()
        self.match_calls: list[tuple[str, str]] = []

    async def _enter(self, op: str) -> None:
        self.calls[op] += 1
        gate = self.gates.get(op)
        if gate is not None:
            await gate.wait()
        if op in self.fail_next:
            raise self.fail_next.pop(op)

    def seed_images(self, profile_id: str, count: int) -> list[ImageAsset]:
        images = []
        for i in range(count):
            self._next_image += 1
            images.append(
                ImageAsset(id=f"img-{self._next_image}", position=i, storage_id=f"s-{self._next_image}")
            )
        self.images[profile_id] = list(images)
        return images

    async def submit_draft(self, submission: ProfileSubmission) -> SubmissionConfirmation:
        await self._enter("submit_draft")
        self.submissions.append(submission)
        return SubmissionConfirmation(profile_id=f"profile-{len(self.submissions)}")

    async def upload_image(self, profile_id, data, filename, content_type) -> ImageAsset:
        await self._enter("upload_image")
        self._next_image += 1
        stored = self.images.setdefault(profile_id, [])
        asset = ImageAsset(
            id=f"img-{self._next_image}",
            position=len(stored),
            storage_id=f"s-{self._next_image}",
            file_name=filename,
        )
        stored.append(asset)
        return asset

    async def delete_image(self, profile_id, asset_id) -> None:
        await self._enter("delete_image")
        stored = self.images.get(profile_id, [])
        if not any(img.id == asset_id for img in stored):
            raise CollaboratorError("delete image", "Image not found", 404)
        self.images[profile_id] = [img for img in stored if img.id != asset_id]

    async def reorder_images(self, profile_id, asset_ids) -> None:
        await self._enter("reorder_images")
        self.reorder_payloads.append(list(asset_ids))

    async def list_images(self, profile_id) -> list[ImageAsset]:
        await self._enter("list_images")
        return list(self.images.get(profile_id, []))

    async def search_profiles(self, query, page=1) -> list[MatchCandidate]:
        self.search_queries.append(query)
        await self._enter("search_profiles")
        delay = self.search_delays.get(query)
        if delay:
            await asyncio.sleep(delay)
        if self.search_override is not None:
            return list(self.search_override)
        return [p for p in self.profiles if query.lower() in p.display_name.lower()]

    async def update_profile(self, profile_id, values) -> None:
        await self._enter("update_profile")
        self.updates.append((profile_id, dict(values)))

    async def create_match(self, source_id, target_id) -> MatchResult:
        self.match_calls.append((source_id, target_id))
        await self._enter("create_match")
        edge = MatchEdge(source_id=source_id, target_id=target_id)
        if edge in self.edges:
            return MatchResult(success=False, error="Profiles are already matched", already_matched=True)
        self.edges.add(edge)
        return MatchResult(success=True)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def step_data() -> dict[str, dict[str, Any]]:
    """Valid input for every data step, keyed by step value."""
    return {
        "basic_info": {
            "profileFor": "self",
            "gender": "male",
            "fullName": "Aziz Rahimi",
            "dateOfBirth": "1992-04-12",
            "phoneNumber": "+44 7700900123",
            "height": "178",
            "maritalStatus": "single",
        },
        "location": {
            "country": "United Kingdom",
            "city": "London",
            "diet": "halal",
            "smoking": "no",
            "drinking": "no",
            "physicalStatus": "normal",
        },
        "cultural": {
            "motherTongue": "pashto",
            "religion": "muslim",
            "ethnicity": "pashtun",
        },
        "education": {
            "education": "BSc Computer Science",
            "occupation": "Software Engineer",
            "annualIncome": "45000",
        },
        "about": {
            "aboutMe": "Family oriented, loves hiking and cooking.",
            "preferredGender": "female",
            "partnerPreferenceAgeMin": 25,
            "partnerPreferenceAgeMax": 32,
            "partnerPreferenceCity": "London, Birmingham",
        },
    }


@pytest.fixture
def full_profile(step_data) -> dict[str, Any]:
    """A complete profile as edited on the admin surface."""
    values: dict[str, Any] = {}
    for data in step_data.values():
        values.update(data)
    return values


def assert_contiguous(images: list[ImageAsset]) -> None:
    """Positions are 0..N-1 and no persisted id appears twice."""
    assert [img.position for img in images] == list(range(len(images)))
    ids = [img.id for img in images if img.id is not None]
    assert len(ids) == len(set(ids))
