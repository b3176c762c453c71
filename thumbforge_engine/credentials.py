"""Credential selection capability supplied by the host."""

from __future__ import annotations

import getpass
import os
import sys
from typing import Protocol

from .providers.gemini import gemini_api_key


class CredentialGate(Protocol):
    def has_credential(self) -> bool:
        ...

    def request_credential(self) -> None:
        ...


class EnvCredentialGate:
    """Reads the key from the environment; re-selection asks on the terminal when one is attached."""

    def __init__(self, env_key: str = "GEMINI_API_KEY", interactive: bool | None = None) -> None:
        self.env_key = env_key
        self.interactive = interactive
        self.requests = 0

    def has_credential(self) -> bool:
        return bool(gemini_api_key())

    def request_credential(self) -> None:
        self.requests += 1
        interactive = self.interactive
        if interactive is None:
            interactive = bool(getattr(sys.stdin, "isatty", lambda: False)())
        if not interactive:
            print(f"Model access error. Set {self.env_key} to a key with access to the selected model.")
            return
        value = getpass.getpass(f"{self.env_key}: ").strip()
        if value:
            os.environ[self.env_key] = value


class StaticCredentialGate:
    """Always reports a credential; used with the offline backend."""

    def has_credential(self) -> bool:
        return True

    def request_credential(self) -> None:
        return None
