"""Deployment configuration and its named defaults."""

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from ipfsdeploy.errors import InvalidConfiguration

DEFAULT_PUBLIC_DIR = "public"
DEFAULT_PINNERS = ("pinata", "infura")
DEFAULT_REQUIRED_PROVIDERS: tuple[str, ...] = ()
DEFAULT_TIMEOUT = 60.0

KNOWN_PINNERS = frozenset(DEFAULT_PINNERS)


@dataclass(frozen=True)
class CloudflareCredentials:
    api_token: str | None = None
    api_email: str | None = None
    api_key: str | None = None

    def is_complete(self) -> bool:
        return bool(self.api_token) or bool(self.api_email and self.api_key)

    def headers(self) -> dict[str, str]:
        if self.api_token:
            return {"Authorization": f"Bearer {self.api_token}"}
        return {"X-Auth-Email": self.api_email or "", "X-Auth-Key": self.api_key or ""}


@dataclass(frozen=True)
class PinataCredentials:
    api_key: str | None = None
    secret_api_key: str | None = None

    def is_complete(self) -> bool:
        return bool(self.api_key and self.secret_api_key)


@dataclass(frozen=True)
class InfuraCredentials:
    """Infura credentials are optional; the public endpoint is tried without them."""

    project_id: str | None = None
    project_secret: str | None = None

    def is_complete(self) -> bool:
        return True

    def auth(self) -> tuple[str, str] | None:
        if self.project_id and self.project_secret:
            return (self.project_id, self.project_secret)
        return None


@dataclass(frozen=True)
class DeploymentConfig:
    public_dir: str = DEFAULT_PUBLIC_DIR
    update_dns: bool = True
    open: bool = False
    site_domain: str | None = None
    cloudflare: CloudflareCredentials = field(default_factory=CloudflareCredentials)
    pinata: PinataCredentials = field(default_factory=PinataCredentials)
    infura: InfuraCredentials = field(default_factory=InfuraCredentials)
    pinners: tuple[str, ...] = DEFAULT_PINNERS
    required_providers: tuple[str, ...] = DEFAULT_REQUIRED_PROVIDERS
    copy_to_clipboard: bool = True
    start_daemon: bool = True
    timeout: float = DEFAULT_TIMEOUT
    commit: str | None = None

    @property
    def site_url(self) -> str | None:
        return f"https://{self.site_domain}" if self.site_domain else None

    @property
    def metadata(self) -> dict[str, str]:
        """Label and provenance sent to pinning providers."""
        meta = {"name": self.site_domain or Path(self.public_dir).resolve().name}
        if self.commit:
            meta["gitCommitHash"] = self.commit
        return meta

    def credentials_for(self, pinner: str):
        return {
            "pinata": self.pinata,
            "infura": self.infura,
        }[pinner]

    def validate(self) -> None:
        """Check local preconditions. Never touches the network."""
        if not Path(self.public_dir).is_dir():
            raise InvalidConfiguration(f"Directory not found: {self.public_dir}")

        for name in self.pinners:
            if name not in KNOWN_PINNERS:
                raise InvalidConfiguration(
                    f"Unknown pinning provider {name!r}; "
                    f"choose from {', '.join(sorted(KNOWN_PINNERS))}"
                )
            if not self.credentials_for(name).is_complete():
                raise InvalidConfiguration(f"Missing credentials for {name}")

        for name in self.required_providers:
            if name not in self.pinners:
                raise InvalidConfiguration(
                    f"Required provider {name!r} is not in the pinner list"
                )

        if self.update_dns and not self.site_domain:
            raise InvalidConfiguration("A site domain is needed to update DNS")
        if self.update_dns and not self.cloudflare.is_complete():
            raise InvalidConfiguration(
                "Cloudflare credentials missing: set an API token or email and API key"
            )
        if self.timeout <= 0:
            raise InvalidConfiguration("Timeout must be positive")


def detect_commit(cwd: str | None = None) -> str | None:
    """Return the HEAD commit hash if `cwd` is inside a git checkout."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            cwd=cwd,
            timeout=5,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
        return None
    return result.stdout.strip() or None
