import base64


class PersonalAccessTokenAuth:
    """Builds the Basic auth header Azure DevOps expects for a PAT.

    The header is encoded once and reused read-only for every request.
    """

    def __init__(self, pat: str):
        if not pat:
            raise ValueError("Personal access token must not be empty")
        token = base64.b64encode(f":{pat}".encode("utf-8")).decode("ascii")
        self._header_value = f"Basic {token}"

    def get_auth_headers(self) -> dict[str, str]:
        return {"Authorization": self._header_value}
