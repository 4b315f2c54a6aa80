"""Azure DevOps Pipelines REST API service."""

from .auth import PersonalAccessTokenAuth
from .client import AzureDevOpsClient
from .config import AzureDevOpsConfig
from .exceptions import (
    AzureDevOpsAPIError,
    AzureDevOpsAuthError,
    AzureDevOpsNotFoundError,
)
from .models import PipelineDefinition, PipelineRun, RunResult, RunState

__all__ = [
    "AzureDevOpsClient",
    "PersonalAccessTokenAuth",
    "AzureDevOpsConfig",
    "AzureDevOpsAPIError",
    "AzureDevOpsAuthError",
    "AzureDevOpsNotFoundError",
    "PipelineDefinition",
    "PipelineRun",
    "RunResult",
    "RunState",
]
