"""
Data model for appcfg invocations.

- InvocationConfig: everything needed to build the tool's argument vector
- Settings: the credential store (server entries) plus environment proxies
- ResolvedCredentials: per-invocation login details, discarded after use
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# Known appcfg password prompt text ("Password for user@example.com: ")
DEFAULT_PROMPT_MARKERS: Tuple[str, ...] = ("Password for ", "Password: ")

DEFAULT_ENTRY_POINT = "appcfg:main"


@dataclass(frozen=True)
class InvocationConfig:
    """
    Read-only configuration for one appcfg invocation.

    String options left empty are not emitted on the command line.
    """
    sdk_root: str
    upload_server: str = ""
    host: str = ""  # Overrides the Host header sent with all RPCs
    proxy: str = ""
    interactive: bool = True
    passin: bool = False  # Always read the login password from stdin
    split_jars: bool = False
    retain_upload_dir: bool = False
    email: Optional[str] = None
    server_id: Optional[str] = None  # Settings entry holding username/password
    app_dir: str = "."
    entry_point: str = DEFAULT_ENTRY_POINT
    prompt_markers: Tuple[str, ...] = DEFAULT_PROMPT_MARKERS


@dataclass(frozen=True)
class ServerEntry:
    """Stored login for a deploy target, looked up by id."""
    id: str
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, server_id: Any, data: Dict[str, Any]) -> "ServerEntry":
        # YAML loads all-digit ids and passwords as ints
        username = data.get("username")
        password = data.get("password")
        return cls(
            id=str(server_id),
            username=None if username is None else str(username),
            password=None if password is None else str(password),
        )


@dataclass(frozen=True)
class ProxyEntry:
    """An HTTP proxy declared in the settings."""
    id: str
    host: str
    port: int
    active: bool = True
    protocol: str = "http"

    @property
    def spec(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProxyEntry":
        return cls(
            id=str(data.get("id", data["host"])),
            host=data["host"],
            port=int(data["port"]),
            active=data.get("active", True),
            protocol=data.get("protocol", "http"),
        )


@dataclass(frozen=True)
class Settings:
    """Credential store and proxy list consulted while building an invocation."""
    servers: Dict[str, ServerEntry] = field(default_factory=dict)
    proxies: List[ProxyEntry] = field(default_factory=list)

    def get_server(self, server_id: Optional[str]) -> Optional[ServerEntry]:
        if not server_id:
            return None
        return self.servers.get(server_id)

    def get_active_proxy(self) -> Optional[ProxyEntry]:
        for proxy in self.proxies:
            if proxy.active:
                return proxy
        return None


class CredentialSource(Enum):
    """Where the login details of an invocation came from."""
    EXPLICIT = "explicit"
    CREDENTIAL_STORE = "credential_store"
    NONE = "none"


@dataclass
class ResolvedCredentials:
    """
    Login details for a single invocation.

    Carries a secret: never log it, and call discard() once the invocation
    is over.
    """
    email: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    source: CredentialSource = CredentialSource.NONE

    @property
    def requires_injection(self) -> bool:
        # An unattended run must never be left at the tool's password prompt
        return self.password is not None and self.source is CredentialSource.CREDENTIAL_STORE

    def discard(self) -> None:
        self.password = None
