"""Remote collaborators: abstract contracts and the HTTP implementation."""

from .base import ImageStore, MatchService, ProfileDirectory, ProfileService
from .api import ProfileApiClient

__all__ = [
    "ImageStore",
    "MatchService",
    "ProfileDirectory",
    "ProfileService",
    "ProfileApiClient",
]
