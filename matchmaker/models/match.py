"""
Match models - search candidates, match edges and creation results.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MatchCandidate(BaseModel):
    """A profile suggested by the incremental search."""
    model_config = ConfigDict(frozen=True)

    profile_id: str
    display_name: str
    city: Optional[str] = None

    def name_contains(self, text: str) -> bool:
        """Case-insensitive containment check against the display name."""
        return text.strip().lower() in self.display_name.lower()

    @property
    def label(self) -> str:
        return f"{self.display_name} – {self.city}" if self.city else self.display_name

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "MatchCandidate":
        """Build a candidate from an admin profile record."""
        profile_id = raw.get("_id") or raw.get("id") or raw.get("profileId")
        if not profile_id:
            raise ValueError("Profile record without an identifier")
        return cls(
            profile_id=str(profile_id),
            display_name=raw.get("fullName") or raw.get("displayName") or "",
            city=raw.get("city"),
        )


class MatchEdge(BaseModel):
    """
    Unordered pair of profiles that are mutually matched.
    (a, b) and (b, a) denote the same edge.
    """
    model_config = ConfigDict(frozen=True)

    source_id: str
    target_id: str

    @model_validator(mode="after")
    def check_distinct(self) -> "MatchEdge":
        if self.source_id == self.target_id:
            raise ValueError("Cannot match a profile with itself")
        return self

    @property
    def members(self) -> frozenset[str]:
        return frozenset((self.source_id, self.target_id))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatchEdge):
            return NotImplemented
        return self.members == other.members

    def __hash__(self) -> int:
        return hash(self.members)


class MatchResult(BaseModel):
    """Outcome reported by the match service."""
    success: bool
    error: Optional[str] = None
    already_matched: bool = Field(
        default=False,
        description="The edge already existed; nothing was created"
    )
