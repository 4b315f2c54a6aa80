from pydantic import BaseModel


class AzureDevOpsConfig(BaseModel):
    """Configuration for the Azure DevOps Pipelines API client."""

    base_url: str = "https://dev.azure.com"
    api_version: str = "7.1"
    timeout_seconds: float = 30.0
    max_connections: int = 10
    max_keepalive_connections: int = 5

    def project_url(self, organization: str, project: str) -> str:
        """Return the `_apis/` root for one organization/project pair."""
        return f"{self.base_url.rstrip('/')}/{organization}/{project}/_apis/"
