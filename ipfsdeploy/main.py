"""ipfs-deploy CLI — publish a static site to IPFS and point DNSLink at it."""

from pathlib import Path

import click
from dotenv import find_dotenv, load_dotenv

from ipfsdeploy import ipfs
from ipfsdeploy.config import (
    DEFAULT_PINNERS,
    DEFAULT_PUBLIC_DIR,
    DEFAULT_TIMEOUT,
    KNOWN_PINNERS,
    CloudflareCredentials,
    DeploymentConfig,
    InfuraCredentials,
    PinataCredentials,
    detect_commit,
)
from ipfsdeploy.deploy import Deployer

PINNER_CHOICE = click.Choice(sorted(KNOWN_PINNERS))


@click.command()
@click.argument(
    "public_dir",
    default=DEFAULT_PUBLIC_DIR,
    envvar="IPFS_DEPLOY_PUBLIC_DIR",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--site-domain",
    "-d",
    envvar="IPFS_DEPLOY_SITE_DOMAIN",
    help="Domain whose DNSLink record is updated.",
)
@click.option(
    "--dns/--no-dns",
    "update_dns",
    default=True,
    envvar="IPFS_DEPLOY_UPDATE_DNS",
    help="Update the DNSLink TXT record.",
)
@click.option(
    "--open/--no-open",
    "open_site",
    default=False,
    envvar="IPFS_DEPLOY_OPEN",
    help="Open the site after a DNS update.",
)
@click.option("--copy/--no-copy", default=True, help="Copy the hash to the clipboard.")
@click.option(
    "--pinner",
    "-p",
    "pinners",
    multiple=True,
    type=PINNER_CHOICE,
    envvar="IPFS_DEPLOY_PINNERS",
    help="Remote pinning provider (repeatable). Defaults to all.",
)
@click.option(
    "--require",
    "required",
    multiple=True,
    type=PINNER_CHOICE,
    envvar="IPFS_DEPLOY_REQUIRED_PINNERS",
    help="Abort before DNS if this provider fails to pin (repeatable).",
)
@click.option("--cloudflare-token", envvar="IPFS_DEPLOY_CLOUDFLARE__API_TOKEN")
@click.option("--cloudflare-email", envvar="IPFS_DEPLOY_CLOUDFLARE__API_EMAIL")
@click.option("--cloudflare-key", envvar="IPFS_DEPLOY_CLOUDFLARE__API_KEY")
@click.option("--pinata-key", envvar="IPFS_DEPLOY_PINATA__API_KEY")
@click.option("--pinata-secret", envvar="IPFS_DEPLOY_PINATA__SECRET_API_KEY")
@click.option("--infura-project-id", envvar="IPFS_DEPLOY_INFURA__PROJECT_ID")
@click.option("--infura-project-secret", envvar="IPFS_DEPLOY_INFURA__PROJECT_SECRET")
@click.option(
    "--commit",
    envvar="IPFS_DEPLOY_COMMIT",
    help="Build provenance sent to pinners. Defaults to git HEAD.",
)
@click.option(
    "--start-daemon/--no-start-daemon",
    default=True,
    help="Start a local daemon if none is running.",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Seconds per remote call.",
)
@click.option("--dry-run", is_flag=True, help="Only compute and print the hash.")
def cli(
    public_dir: Path,
    site_domain: str | None,
    update_dns: bool,
    open_site: bool,
    copy: bool,
    pinners: tuple[str, ...],
    required: tuple[str, ...],
    cloudflare_token: str | None,
    cloudflare_email: str | None,
    cloudflare_key: str | None,
    pinata_key: str | None,
    pinata_secret: str | None,
    infura_project_id: str | None,
    infura_project_secret: str | None,
    commit: str | None,
    start_daemon: bool,
    timeout: float,
    dry_run: bool,
) -> None:
    """Publish PUBLIC_DIR to IPFS, pin it remotely and update DNSLink."""
    if dry_run:
        if not public_dir.is_dir():
            raise click.ClickException(f"Directory not found: {public_dir}")
        cid = ipfs.add_directory(str(public_dir), only_hash=True, timeout=timeout)
        click.echo(cid)
        return

    config = DeploymentConfig(
        public_dir=str(public_dir),
        update_dns=update_dns,
        open=open_site,
        site_domain=site_domain,
        cloudflare=CloudflareCredentials(
            api_token=cloudflare_token,
            api_email=cloudflare_email,
            api_key=cloudflare_key,
        ),
        pinata=PinataCredentials(api_key=pinata_key, secret_api_key=pinata_secret),
        infura=InfuraCredentials(
            project_id=infura_project_id, project_secret=infura_project_secret
        ),
        pinners=pinners or DEFAULT_PINNERS,
        required_providers=required,
        copy_to_clipboard=copy,
        start_daemon=start_daemon,
        timeout=timeout,
        commit=commit or detect_commit(str(public_dir)),
    )
    report = Deployer(config).run()

    click.echo()
    click.echo(f"ipfs.io/ipfs/{report.cid}")
    failed = report.failed_steps()
    if failed:
        click.secho(
            f"Finished with {len(failed)} non-fatal failure(s): "
            + ", ".join(step.step for step in failed),
            fg="yellow",
        )


def main() -> None:
    load_dotenv(find_dotenv(usecwd=True))
    cli()
