"""The deployment pipeline: local add, remote pins, DNSLink, side effects."""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

import click
import requests

from ipfsdeploy import effects
from ipfsdeploy.config import DeploymentConfig
from ipfsdeploy.dns import CloudflareDns
from ipfsdeploy.errors import DnsUpdateFailed, NetworkTimeout, RemotePinFailed
from ipfsdeploy.ipfs import LocalNode, filter_public_addresses
from ipfsdeploy.pinners import Pinner, build_pinners


@dataclass
class StepResult:
    step: str
    ok: bool
    value: Any = None
    error: str | None = None


@dataclass
class DeploymentReport:
    cid: str
    steps: list[StepResult] = field(default_factory=list)
    dns_record: str | None = None
    copied: bool = False
    opened: bool = False

    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]


def _pin_one(
    pinner: Pinner, cid: str, metadata: dict[str, str], host_hints: list[str]
) -> StepResult:
    step = f"pin:{pinner.name}"
    try:
        ack = pinner.request_pin(cid, metadata, host_hints)
    except (RemotePinFailed, NetworkTimeout) as e:
        return StepResult(step=step, ok=False, error=e.message)
    return StepResult(step=step, ok=True, value=ack)


def pin_everywhere(
    pinners: list[Pinner],
    cid: str,
    metadata: dict[str, str],
    host_hints: list[str],
) -> list[StepResult]:
    """Request a pin from every provider concurrently.

    Each provider is attempted exactly once regardless of the others' outcome.
    Results come back in provider order.
    """
    if not pinners:
        return []
    with ThreadPoolExecutor(max_workers=len(pinners)) as pool:
        futures = [
            pool.submit(_pin_one, pinner, cid, metadata, host_hints)
            for pinner in pinners
        ]
        return [future.result() for future in futures]


def _default_echo(message: str, fg: str | None = None) -> None:
    click.secho(message, fg=fg)


class Deployer:
    def __init__(
        self,
        config: DeploymentConfig,
        node: LocalNode | None = None,
        pinners: list[Pinner] | None = None,
        dns: CloudflareDns | None = None,
        copy: Callable[[str], bool] = effects.copy_to_clipboard,
        open_url: Callable[[str], bool] = effects.open_url,
        echo: Callable[..., None] = _default_echo,
    ) -> None:
        self.config = config
        self.node = node or LocalNode(
            timeout=config.timeout, start_daemon=config.start_daemon
        )
        # one session for every provider call, closed when the run ends
        self.session = requests.Session() if pinners is None or dns is None else None
        if pinners is None:
            pinners = build_pinners(config, session=self.session)
        self.pinners = pinners
        self.dns = dns or CloudflareDns(
            config.cloudflare, timeout=config.timeout, session=self.session
        )
        self.copy = copy
        self.open_url = open_url
        self.echo = echo

    def run(self) -> DeploymentReport:
        """Run the pipeline once.

        Raises DeployError subclasses for fatal failures. Non-fatal failures are
        echoed and recorded in the returned report.
        """
        try:
            return self._run()
        finally:
            if self.session is not None:
                self.session.close()

    def _run(self) -> DeploymentReport:
        config = self.config
        config.validate()

        self.echo("Connecting to local IPFS daemon...")
        if self.node.ensure_running():
            self.echo("IPFS daemon started.")

        self.echo(f"Adding and pinning {config.public_dir} locally...")
        cid = self.node.add_directory(config.public_dir)
        self.echo(f"Added locally as {cid}.", fg="green")
        report = DeploymentReport(cid=cid)
        report.steps.append(StepResult(step="add", ok=True, value=cid))

        host_hints = filter_public_addresses(self.node.list_addresses())
        report.steps.append(StepResult(step="addresses", ok=True, value=host_hints))

        self._pin_remotely(report, host_hints)

        if config.update_dns:
            self._update_dns(report)

        if config.copy_to_clipboard:
            report.copied = self.copy(cid)
            if report.copied:
                self.echo(f"Hash {cid} copied to clipboard.", fg="green")
            else:
                self.echo(
                    "No clipboard tool available; hash not copied.", fg="yellow"
                )

        if config.open and config.update_dns:
            report.opened = self.open_url(config.site_url)

        return report

    def _pin_remotely(self, report: DeploymentReport, host_hints: list[str]) -> None:
        for pinner in self.pinners:
            self.echo(f"Requesting remote pin to {pinner.display_name}...")
        results = pin_everywhere(
            self.pinners, report.cid, self.config.metadata, host_hints
        )
        report.steps.extend(results)

        for pinner, result in zip(self.pinners, results):
            if result.ok:
                self.echo(f"It's pinned to {pinner.display_name} now.", fg="green")
            else:
                self.echo(result.error, fg="red")

        for pinner, result in zip(self.pinners, results):
            if not result.ok and pinner.name in self.config.required_providers:
                raise RemotePinFailed(pinner.display_name, result.error)

    def _update_dns(self, report: DeploymentReport) -> None:
        domain = self.config.site_domain
        self.echo("Beaming new hash to DNS provider Cloudflare...")
        try:
            content = self.dns.publish_link(domain, report.cid)
        except (DnsUpdateFailed, NetworkTimeout) as e:
            report.steps.append(StepResult(step="dns", ok=False, error=e.message))
            self.echo(e.message, fg="red")
            return
        report.dns_record = content
        report.steps.append(StepResult(step="dns", ok=True, value=content))
        self.echo(f"Updated TXT _dnslink.{domain} to: {content}", fg="green")
        self.echo("Your website is deployed now.", fg="green")


def deploy(config: DeploymentConfig) -> DeploymentReport:
    return Deployer(config).run()
