from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .auth import PersonalAccessTokenAuth
from .config import AzureDevOpsConfig
from .exceptions import (
    AzureDevOpsAPIError,
    AzureDevOpsAuthError,
    AzureDevOpsNotFoundError,
)
from .models import PipelineDefinition, PipelineRun

logger = logging.getLogger(__name__)


class AzureDevOpsClient:
    def __init__(
        self,
        organization: str,
        project: str,
        pat: str,
        config: AzureDevOpsConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not organization or not project:
            raise ValueError("organization and project are required")

        self.organization = organization
        self.project = project
        self.config = config or AzureDevOpsConfig()
        self.auth = PersonalAccessTokenAuth(pat)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        logger.info(
            f"Initialized AzureDevOpsClient (organization={organization}, "
            f"project={project})"
        )

    async def __aenter__(self) -> AzureDevOpsClient:
        limits = httpx.Limits(
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
        )
        self._client = httpx.AsyncClient(
            base_url=self.config.project_url(self.organization, self.project),
            timeout=self.config.timeout_seconds,
            limits=limits,
            headers=self.auth.get_auth_headers(),
            params={"api-version": self.config.api_version},
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Closed AzureDevOpsClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "AzureDevOpsClient must be used as async context manager"
            )
        return self._client

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
        return response.reason_phrase

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self.client.request(
                method=method,
                url=endpoint,
                json=json_data,
            )
        except httpx.RequestError as e:
            logger.error(f"Network error on {method} {endpoint}: {e}")
            raise AzureDevOpsAPIError(f"Network error: {e}") from e

        # A rejected PAT gets a 203 with the HTML sign-in page instead of a 401
        if response.status_code in (401, 203):
            raise AzureDevOpsAuthError(
                "Authentication failed; check the personal access token",
                status_code=response.status_code,
            )
        elif response.status_code == 404:
            raise AzureDevOpsNotFoundError(
                f"Resource not found: {endpoint} ({self._error_message(response)})",
                status_code=404,
            )
        elif not response.is_success:
            raise AzureDevOpsAPIError(
                f"{method} {endpoint} failed with HTTP {response.status_code}: "
                f"{self._error_message(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AzureDevOpsAPIError(
                f"Invalid JSON in response to {method} {endpoint}",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise AzureDevOpsAPIError(
                f"Expected a JSON object in response to {method} {endpoint}, "
                f"got {type(data).__name__}",
                status_code=response.status_code,
            )
        return data

    @staticmethod
    def _parse_run(data: dict[str, Any], pipeline_id: int) -> PipelineRun:
        try:
            return PipelineRun.from_api(data, pipeline_id)
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise AzureDevOpsAPIError(f"Unexpected run payload: {e}") from e

    async def run_pipeline(self, pipeline_id: int, ref: str) -> PipelineRun:
        """Queue a new run of a pipeline definition on the given branch ref."""
        body = {"resources": {"repositories": {"self": {"refName": ref}}}}
        data = await self._request(
            "POST", f"pipelines/{pipeline_id}/runs", json_data=body
        )
        run = self._parse_run(data, pipeline_id)
        logger.debug(f"Queued run {run.id} of pipeline {pipeline_id} on {ref}")
        return run

    async def get_run(self, pipeline_id: int, run_id: int) -> PipelineRun:
        data = await self._request("GET", f"pipelines/{pipeline_id}/runs/{run_id}")
        return self._parse_run(data, pipeline_id)

    async def list_pipelines(self) -> list[PipelineDefinition]:
        data = await self._request("GET", "pipelines")
        try:
            return [PipelineDefinition.from_api(item) for item in data.get("value") or []]
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise AzureDevOpsAPIError(f"Unexpected pipeline list payload: {e}") from e

