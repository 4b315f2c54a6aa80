"""Tests for PAT credential sources."""

import pytest

from azpipes.config import Settings
from azpipes.credentials import (
    chain_credentials,
    prompt_credential,
    resolve_pat,
    settings_credential,
)
from azpipes.exceptions import CredentialError


def test_settings_credential_reads_pat() -> None:
    settings = Settings(_env_file=None, pat="  from-env  ")
    assert settings_credential(settings)() == "from-env"


def test_chain_returns_first_non_empty() -> None:
    calls = []

    def empty() -> str:
        calls.append("empty")
        return ""

    def found() -> str:
        calls.append("found")
        return "token"

    def never() -> str:
        calls.append("never")
        return "other"

    assert chain_credentials(empty, found, never)() == "token"
    assert calls == ["empty", "found"]


def test_prompt_credential_uses_reader() -> None:
    prompts = []

    def reader(prompt: str) -> str:
        prompts.append(prompt)
        return "typed\n"

    assert prompt_credential(reader=reader)() == "typed"
    assert prompts == ["Azure DevOps PAT: "]


def test_prompt_credential_without_input_is_empty() -> None:
    def reader(prompt: str) -> str:
        raise EOFError

    assert prompt_credential(reader=reader)() == ""


def test_resolve_pat_raises_when_empty() -> None:
    with pytest.raises(CredentialError, match="AZPIPES_PAT"):
        resolve_pat(chain_credentials(lambda: "", lambda: ""))


def test_resolve_pat_returns_token() -> None:
    assert resolve_pat(lambda: "token") == "token"
