"""Credential sources for the Azure DevOps personal access token.

A credential source is any zero-argument callable returning the PAT, so the
orchestrator and client never know where the token came from.
"""

import getpass
import logging
from typing import Callable

from azpipes.config import Settings
from azpipes.exceptions import CredentialError

logger = logging.getLogger(__name__)

CredentialSource = Callable[[], str]


def settings_credential(settings: Settings) -> CredentialSource:
    """Read the PAT from settings (AZPIPES_PAT or .env)."""

    def _source() -> str:
        return settings.pat.strip()

    return _source


def prompt_credential(
    prompt: str = "Azure DevOps PAT: ",
    reader: Callable[[str], str] = getpass.getpass,
) -> CredentialSource:
    """Ask the operator for the PAT without echoing it."""

    def _source() -> str:
        try:
            return reader(prompt).strip()
        except EOFError:
            logger.debug("No interactive input available for PAT prompt")
            return ""

    return _source


def chain_credentials(*sources: CredentialSource) -> CredentialSource:
    """Return the first non-empty token produced by `sources`, in order."""

    def _source() -> str:
        for source in sources:
            token = source()
            if token:
                return token
        return ""

    return _source


def resolve_pat(source: CredentialSource) -> str:
    """Call a credential source once, raising if it yields nothing."""
    token = source()
    if not token:
        raise CredentialError(
            "No personal access token available. "
            "Set AZPIPES_PAT in the environment or .env file."
        )
    return token
