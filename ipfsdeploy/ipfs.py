"""Wrappers around the `ipfs` CLI binary talking to the local daemon."""

import ipaddress
import json
import shutil
import subprocess
import time

from ipfsdeploy.errors import (
    DaemonUnreachable,
    DeployError,
    IpfsCommandFailed,
    NetworkTimeout,
)

DAEMON_STARTUP_TIMEOUT = 15
DAEMON_POLL_INTERVAL = 1
DAEMON_PROBE_TIMEOUT = 5

NON_PUBLIC_NETWORKS = [
    ipaddress.ip_network(net)
    for net in (
        "0.0.0.0/32",
        "127.0.0.0/8",
        "10.0.0.0/8",
        "100.64.0.0/10",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "169.254.0.0/16",
        "::/128",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
]


def run_ipfs(*args: str, timeout: float | None = None) -> str:
    try:
        result = subprocess.run(
            ["ipfs", *args],
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise DaemonUnreachable("ipfs is not installed") from e
    except subprocess.TimeoutExpired as e:
        raise NetworkTimeout(f"ipfs {args[0]}", timeout) from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
        raise IpfsCommandFailed(f"ipfs {args[0]} failed: {detail}") from e
    return result.stdout.strip()


def is_installed() -> bool:
    return shutil.which("ipfs") is not None


def is_daemon_running(timeout: float = DAEMON_PROBE_TIMEOUT) -> bool:
    # `ipfs id` also answers offline; listing swarm addrs needs a live daemon
    try:
        run_ipfs("swarm", "addrs", "local", timeout=timeout)
        return True
    except DeployError:
        return False


def start_daemon() -> None:
    """Spawn a daemon and wait until it answers, DAEMON_STARTUP_TIMEOUT at most."""
    subprocess.Popen(
        ["ipfs", "daemon", "--init"],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    deadline = time.monotonic() + DAEMON_STARTUP_TIMEOUT
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        time.sleep(min(DAEMON_POLL_INTERVAL, remaining))
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        if is_daemon_running(timeout=min(DAEMON_POLL_INTERVAL * 2, remaining)):
            return
    raise DaemonUnreachable("IPFS daemon failed to start within timeout")


def ensure_daemon(start: bool = True) -> bool:
    """Make sure a daemon answers. Returns True if one had to be started."""
    if not is_installed():
        raise DaemonUnreachable("ipfs is not installed")
    if is_daemon_running():
        return False
    if not start:
        raise DaemonUnreachable(
            "Couldn't connect to local ipfs daemon. Is it running?"
        )
    start_daemon()
    return True


def add_directory(
    dir_path: str, only_hash: bool = False, timeout: float | None = None
) -> str:
    """Add directory recursively, return the root CID v1.

    `ipfs add -q` prints one CID per entry; the last one is the root of the tree.
    """
    args = ["add", "-r", "-q", "--cid-version=1"]
    if only_hash:
        args.append("--only-hash")
    args.append(dir_path)
    output = run_ipfs(*args, timeout=timeout)
    lines = output.splitlines()
    if not lines:
        raise IpfsCommandFailed(f"ipfs add returned nothing for {dir_path}")
    return lines[-1].strip()


def pin_add(cid: str, recursive: bool = True, timeout: float | None = None) -> str:
    """Pin a CID to local storage."""
    args = ["pin", "add"]
    if recursive:
        args.append("--recursive=true")
    else:
        args.append("--recursive=false")
    args.append(cid)
    return run_ipfs(*args, timeout=timeout)


def list_addresses(timeout: float | None = None) -> list[str]:
    """Multiaddrs the local node advertises, in the daemon's order."""
    raw = run_ipfs("id", timeout=timeout)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise IpfsCommandFailed("ipfs id returned malformed output") from e
    return list(data.get("Addresses") or [])


def _multiaddr_ip(multiaddr: str):
    # /ip4/1.2.3.4/tcp/4001/p2p/Qm... -> 1.2.3.4
    parts = multiaddr.split("/")
    if len(parts) < 3 or parts[1] not in ("ip4", "ip6"):
        return None
    try:
        return ipaddress.ip_address(parts[2])
    except ValueError:
        return None


def is_public_address(multiaddr: str) -> bool:
    ip = _multiaddr_ip(multiaddr)
    if ip is None:
        # dns and relay addresses carry no IP to judge
        return True
    if ip.version == 6 and ip.ipv4_mapped:
        ip = ip.ipv4_mapped
    return not any(
        ip.version == net.version and ip in net for net in NON_PUBLIC_NETWORKS
    )


def filter_public_addresses(addresses: list[str]) -> list[str]:
    """Drop loopback and private-range multiaddrs, keeping order."""
    return [addr for addr in addresses if is_public_address(addr)]


class LocalNode:
    """The local daemon as seen by the deployment pipeline."""

    def __init__(
        self, timeout: float | None = None, start_daemon: bool = True
    ) -> None:
        self.timeout = timeout
        self.start_daemon = start_daemon

    def ensure_running(self) -> bool:
        return ensure_daemon(start=self.start_daemon)

    def add_directory(self, path: str) -> str:
        cid = add_directory(path, timeout=self.timeout)
        pin_add(cid, timeout=self.timeout)
        return cid

    def list_addresses(self) -> list[str]:
        return list_addresses(timeout=self.timeout)
