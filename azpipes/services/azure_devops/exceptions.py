class AzureDevOpsAPIError(Exception):
    """Base exception for Azure DevOps API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AzureDevOpsAuthError(AzureDevOpsAPIError):
    """Authentication failed."""

    pass


class AzureDevOpsNotFoundError(AzureDevOpsAPIError):
    """Pipeline or run not found."""

    pass
