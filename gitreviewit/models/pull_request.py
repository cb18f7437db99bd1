"""Pull request awaiting the reviewer's attention."""

from datetime import datetime
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from gitreviewit.models.metadata import EnrichedMetadata
from gitreviewit.models.reviewer import Label

# (owner, repo_name, number)
Identity = Tuple[str, str, int]


class PullRequest(BaseModel):
    """Pull request with cheap metadata from the search call.

    ``metadata`` stays None until the detail fetch succeeds.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Repository owner, e.g. apple")
    repo_name: str = Field(..., min_length=1, description="Repository short name, e.g. swift")
    number: int = Field(..., gt=0)
    title: str
    author_login: str = Field(..., min_length=1)
    author_avatar_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime
    html_url: str
    comment_count: int = Field(default=0, ge=0)
    labels: List[Label] = Field(default_factory=list)
    is_draft: bool = False
    metadata: EnrichedMetadata | None = None

    @property
    def identity(self) -> Identity:
        return (self.owner, self.repo_name, self.number)

    @property
    def full_name(self) -> str:
        """Repository in owner/name form."""
        return f"{self.owner}/{self.repo_name}"

    @property
    def id(self) -> str:
        return f"{self.full_name}#{self.number}"

    def with_metadata(self, metadata: EnrichedMetadata | None) -> "PullRequest":
        """Return a copy carrying ``metadata`` (replaced wholesale)."""
        return self.model_copy(update={"metadata": metadata})
