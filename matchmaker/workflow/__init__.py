"""Workflow components: profile wizard, photo reconciliation and manual matching."""

from .wizard import WizardController
from .images import ImageCollectionReconciler
from .manual_match import ManualMatchInitiator, MatchState
from .admin_edit import ProfileEditSession
from .debounce import LatestTaskRunner

__all__ = [
    "WizardController",
    "ImageCollectionReconciler",
    "ManualMatchInitiator",
    "MatchState",
    "ProfileEditSession",
    "LatestTaskRunner",
]
