"""Resolve the login used for an appcfg invocation."""

import logging

from appcfg_runner.errors import ConfigurationError
from appcfg_runner.models import CredentialSource, InvocationConfig, ResolvedCredentials, Settings

logger = logging.getLogger(__name__)


def resolve_credentials(config: InvocationConfig, settings: Settings) -> ResolvedCredentials:
    """
    Decide which email/password the invocation uses.

    An explicit email always wins over the settings entry. Only a password
    taken from the settings store turns on automated prompt answering; with
    no credentials at all the tool's own prompting is left alone.

    Raises:
        ConfigurationError: server_id is set but settings has no such entry.
    """
    server = None
    if config.server_id:
        server = settings.get_server(config.server_id)
        if server is None:
            raise ConfigurationError(f"No server entry with id '{config.server_id}' in settings")

    if config.email:
        return ResolvedCredentials(email=config.email, source=CredentialSource.EXPLICIT)

    if server is not None:
        logger.debug("Resolved login for server id {%s}", server.id)
        return ResolvedCredentials(
            email=server.username,
            password=server.password,
            source=CredentialSource.CREDENTIAL_STORE,
        )

    return ResolvedCredentials()
