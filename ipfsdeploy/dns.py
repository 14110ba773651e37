"""DNSLink publishing through the Cloudflare API."""

import requests

from ipfsdeploy.config import CloudflareCredentials
from ipfsdeploy.errors import DnsUpdateFailed, InvalidConfiguration, NetworkTimeout

CLOUDFLARE_API = "https://api.cloudflare.com/client/v4"


def dnslink_value(cid: str) -> str:
    return f"dnslink=/ipfs/{cid}"


def _candidate_zones(domain: str) -> list[str]:
    # blog.example.com -> [blog.example.com, example.com]
    labels = domain.strip(".").split(".")
    return [".".join(labels[i:]) for i in range(len(labels) - 1)]


class CloudflareDns:
    def __init__(
        self,
        credentials: CloudflareCredentials,
        timeout: float | None = None,
        session=None,
    ) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self.session = session or requests.Session()

    def _call(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self.session.request(
                method,
                f"{CLOUDFLARE_API}{path}",
                headers=self.credentials.headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout as e:
            raise NetworkTimeout("Cloudflare DNS update", self.timeout) from e
        except requests.exceptions.RequestException as e:
            raise DnsUpdateFailed(f"Cloudflare request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise DnsUpdateFailed(
                f"Cloudflare returned HTTP {response.status_code} without JSON"
            ) from e
        if not data.get("success"):
            messages = "; ".join(
                err.get("message", "unknown error") for err in data.get("errors", [])
            )
            raise DnsUpdateFailed(
                f"Cloudflare API error (HTTP {response.status_code}): "
                f"{messages or 'unknown'}"
            )
        return data

    def find_zone_id(self, domain: str) -> str:
        for zone in _candidate_zones(domain):
            result = self._call("GET", "/zones", params={"name": zone})["result"]
            if result:
                return result[0]["id"]
        raise DnsUpdateFailed(f"No Cloudflare zone found for {domain}")

    def publish_link(self, domain: str, cid: str) -> str:
        """Upsert the `_dnslink.<domain>` TXT record. Returns its content."""
        if not domain or not cid or not self.credentials.is_complete():
            raise InvalidConfiguration(
                "Missing domain, credentials or hash for DNS update"
            )

        zone_id = self.find_zone_id(domain)
        record_name = f"_dnslink.{domain}"
        record = {"type": "TXT", "name": record_name, "content": dnslink_value(cid)}

        existing = self._call(
            "GET",
            f"/zones/{zone_id}/dns_records",
            params={"type": "TXT", "name": record_name},
        )["result"]
        if existing:
            path = f"/zones/{zone_id}/dns_records/{existing[0]['id']}"
            result = self._call("PUT", path, json=record)["result"]
        else:
            path = f"/zones/{zone_id}/dns_records"
            result = self._call("POST", path, json=record)["result"]
        return result["content"]
