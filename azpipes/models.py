"""Data model for sequential pipeline execution."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from azpipes.services.azure_devops.models import RunResult


class PipelineSpec(BaseModel):
    """One configured pipeline definition to run, in sequence order."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    id: int = Field(gt=0)
    ref: str = Field(min_length=1)

    @field_validator("ref", mode="after")
    @classmethod
    def normalize_ref(cls, v: str) -> str:
        """Expand a bare branch name such as `main` to `refs/heads/main`."""
        v = v.strip()
        if not v:
            raise ValueError("ref must not be blank")
        if v.startswith("refs/"):
            return v
        return f"refs/heads/{v}"

    def __str__(self) -> str:
        return f"{self.name} (#{self.id} @ {self.ref})"


class RunHandle(BaseModel):
    """A started run, owned by the orchestrator until its result is known."""

    model_config = ConfigDict(frozen=True)

    run_id: int
    pipeline_id: int
    spec_name: str
    web_url: str | None = None


class TerminalResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    result: RunResult
    raw: str

    @property
    def succeeded(self) -> bool:
        return self.result == RunResult.SUCCEEDED

    @classmethod
    def from_raw(cls, raw: str | None) -> TerminalResult:
        return cls(result=RunResult.parse(raw), raw=raw or "unknown")

    def __str__(self) -> str:
        return self.raw


class PipelineOutcome(BaseModel):
    """What happened to one spec during a sequence run."""

    spec: PipelineSpec
    run_id: int | None = None
    result: TerminalResult | None = None
    error: str | None = None
    polls: int = 0
    web_url: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.result is not None and self.result.succeeded

    def describe(self) -> str:
        if self.error is not None:
            return f"{self.spec.name}: {self.error}"
        if self.result is None:
            return f"{self.spec.name}: no result"
        return f"{self.spec.name}: run {self.run_id} finished with result '{self.result}'"


class SequenceResult(BaseModel):
    outcomes: list[PipelineOutcome] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @property
    def failed(self) -> PipelineOutcome | None:
        for outcome in self.outcomes:
            if not outcome.succeeded:
                return outcome
        return None

    @property
    def success(self) -> bool:
        return self.failed is None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def summary(self) -> str:
        failed = self.failed
        if failed is None:
            return f"All {len(self.outcomes)} pipeline(s) succeeded"
        return f"Stopped at {failed.describe()}"
