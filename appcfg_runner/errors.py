"""Errors raised or reported by an appcfg invocation."""


class DeployError(Exception):
    """Base class for appcfg runner failures."""

    pass


class ConfigurationError(DeployError):
    """SDK root missing or invalid, or a server id with no settings entry."""

    pass


class StreamSetupError(DeployError):
    """The stdin redirection pipe could not be created."""

    pass


class ExternalToolFault(DeployError):
    """The deployment tool's entry point raised while running."""

    pass


class SupervisionInterrupted(DeployError):
    """Waiting for the tool thread was interrupted before it finished."""

    pass
