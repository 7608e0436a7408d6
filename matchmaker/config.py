"""
Configuration and environment handling for the matchmaker core.
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()


class ApiConfig(BaseModel):
    """Remote data API configuration."""
    base_url: str = Field(
        default_factory=lambda: os.getenv("MATCHMAKER_API_URL", "http://localhost:8000/api")
    )
    token: str = Field(default_factory=lambda: os.getenv("MATCHMAKER_API_TOKEN", ""))
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("MATCHMAKER_API_TIMEOUT", "15"))
    )


class WizardConfig(BaseModel):
    """Profile creation wizard configuration."""
    min_photos: int = Field(default=0, ge=0, description="Photos required on the final step")
    block_on_pending_uploads: bool = Field(
        default=False,
        description="Refuse to submit while uploads are still in flight"
    )
    min_partner_age: int = Field(default=18)
    max_partner_age: int = Field(default=120)


class ImageConfig(BaseModel):
    """Profile photo configuration."""
    max_bytes: int = Field(default=10 * 1024 * 1024, description="Largest accepted upload")
    allowed_content_prefix: str = Field(default="image/")


class MatchConfig(BaseModel):
    """Manual match search configuration."""
    min_query_length: int = Field(default=2)
    debounce_seconds: float = Field(
        default_factory=lambda: float(os.getenv("MATCHMAKER_MATCH_DEBOUNCE", "0.3"))
    )
    max_suggestions: int = Field(default=5)


class Config(BaseModel):
    """Main configuration."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)
    images: ImageConfig = Field(default_factory=ImageConfig)
    match: MatchConfig = Field(default_factory=MatchConfig)


# Singleton config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the singleton config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
