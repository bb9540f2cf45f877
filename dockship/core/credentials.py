"""
Credential injection for git operations.

HeaderCredentialProvider keeps the access token out of argv and out of the
stored remote URL by handing git an ``http.extraHeader`` through
environment-scoped configuration. UrlCredentialProvider reproduces the
legacy behaviour of embedding the token in the URL's credential slot.
"""

import base64
from typing import Dict
from urllib.parse import urlsplit, urlunsplit

from ..config.settings import CREDENTIAL_MODES


class CredentialProvider:
    """Supplies credentials to git commands."""

    def clone_url(self, repo_url: str) -> str:
        """Return the URL passed to ``git clone``."""
        return repo_url

    def git_env(self) -> Dict[str, str]:
        """Return environment variables added to git subprocesses."""
        return {}


class NoCredentialProvider(CredentialProvider):
    """Used for public repositories and local paths."""


class HeaderCredentialProvider(CredentialProvider):
    """Send the token as a Basic auth header via GIT_CONFIG_* variables."""

    def __init__(self, token: str, username: str = "x-access-token"):
        self.token = token
        self.username = username

    def git_env(self) -> Dict[str, str]:
        basic = base64.b64encode(f"{self.username}:{self.token}".encode()).decode()
        return {
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": "http.extraHeader",
            "GIT_CONFIG_VALUE_0": f"Authorization: Basic {basic}",
            "GIT_TERMINAL_PROMPT": "0",
        }


class UrlCredentialProvider(CredentialProvider):
    """Embed the token into an https URL (``https://TOKEN@host/...``)."""

    def __init__(self, token: str):
        self.token = token

    def clone_url(self, repo_url: str) -> str:
        parts = urlsplit(repo_url)
        if parts.scheme != "https":
            return repo_url
        host = parts.netloc.rsplit("@", 1)[-1]
        return urlunsplit((parts.scheme, f"{self.token}@{host}", parts.path, parts.query, parts.fragment))

    def git_env(self) -> Dict[str, str]:
        return {"GIT_TERMINAL_PROMPT": "0"}


def get_credential_provider(mode: str, token: str) -> CredentialProvider:
    """Return the provider for a credential mode name."""
    if mode not in CREDENTIAL_MODES:
        raise ValueError(f"Unknown credential mode: {mode}")
    if not token:
        return NoCredentialProvider()
    if mode == "url":
        return UrlCredentialProvider(token)
    return HeaderCredentialProvider(token)


def redact(text: str, token: str) -> str:
    """Replace every occurrence of token in text."""
    if not token:
        return text
    return text.replace(token, "****")
