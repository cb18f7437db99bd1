"""Single CI check run, already decoded into closed enums."""

from pydantic import BaseModel, ConfigDict

from gitreviewit.models.status import CheckConclusion, CheckRunStatus


class CheckRun(BaseModel):
    """One CI/build task result contributing to the overall CheckStatus."""

    model_config = ConfigDict(frozen=True)

    status: CheckRunStatus
    conclusion: CheckConclusion | None = None
