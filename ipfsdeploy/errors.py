"""Exception taxonomy for the deployment pipeline."""

import click


class DeployError(click.ClickException):
    """Base class. Uncaught instances abort the run with exit status 1."""


class DaemonUnreachable(DeployError):
    pass


class InvalidConfiguration(DeployError):
    pass


class RemotePinFailed(DeployError):
    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"Pinning to {provider} failed: {reason}")
        self.provider = provider
        self.reason = reason


class DnsUpdateFailed(DeployError):
    pass


class NetworkTimeout(DeployError):
    def __init__(self, step: str, timeout: float | None = None) -> None:
        detail = f" after {timeout:g}s" if timeout else ""
        super().__init__(f"{step} timed out{detail}")
        self.step = step
        self.timeout = timeout


class IpfsCommandFailed(DeployError):
    """The daemon answered but an `ipfs` command exited with an error."""
