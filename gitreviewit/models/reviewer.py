"""Pull request reviewer and label models."""

from pydantic import BaseModel, ConfigDict, Field

from gitreviewit.models.status import ReviewState


class Reviewer(BaseModel):
    """A user requested to review (or who reviewed) a pull request."""

    model_config = ConfigDict(frozen=True)

    login: str = Field(..., min_length=1, description="GitHub login")
    avatar_url: str | None = Field(default=None, description="Avatar image URL, if the API provided one")
    state: ReviewState = Field(default=ReviewState.REQUESTED, description="requested or submitted review state")


class Label(BaseModel):
    """Label applied to a pull request, e.g. bug (d73a4a)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    color: str = Field(..., pattern=r"^[0-9a-fA-F]{6}$", description="6-digit hex color without #")
