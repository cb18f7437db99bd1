"""GitHub team with the repositories it has access to."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Team(BaseModel):
    """Team the reviewer belongs to."""

    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., min_length=1, description="Team slug, e.g. backend-team")
    name: str = Field(default="", description="Display name, e.g. Backend Team")
    organization: str = Field(..., min_length=1, description="Organization login")
    repositories: List[str] = Field(default_factory=list, description="Repository full names (owner/name)")

    @property
    def full_slug(self) -> str:
        return f"{self.organization}/{self.slug}"
