from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class RunState(str, Enum):
    UNKNOWN = "unknown"
    QUEUED = "queued"
    IN_PROGRESS = "inProgress"
    CANCELING = "canceling"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str | None) -> RunState:
        if not value:
            return cls.UNKNOWN
        if value in ("notStarted", "postponed"):
            return cls.QUEUED
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class RunResult(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> RunResult:
        if value in (cls.SUCCEEDED.value, cls.FAILED.value, cls.CANCELED.value):
            return cls(value)
        return cls.OTHER


class PipelineRun(BaseModel):
    id: int
    pipeline_id: int
    name: str = ""
    state: RunState = RunState.UNKNOWN
    result: str | None = None
    web_url: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state == RunState.COMPLETED or self.result is not None

    @classmethod
    def from_api(cls, data: dict[str, Any], pipeline_id: int) -> PipelineRun:
        links = data.get("_links") or {}
        web = links.get("web") or {}
        pipeline = data.get("pipeline") or {}
        return cls(
            id=data["id"],
            pipeline_id=pipeline.get("id", pipeline_id),
            name=data.get("name", ""),
            state=RunState.parse(data.get("state")),
            result=data.get("result") or None,
            web_url=web.get("href"),
        )


class PipelineDefinition(BaseModel):
    id: int
    name: str = ""
    folder: str = "\\"
    revision: int = 0

    @property
    def path(self) -> str:
        folder = self.folder.rstrip("\\")
        return f"{folder}\\{self.name}" if folder else self.name

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PipelineDefinition:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            folder=data.get("folder") or "\\",
            revision=data.get("revision", 0),
        )
