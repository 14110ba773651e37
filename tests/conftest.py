from unittest.mock import Mock

import pytest

from ipfsdeploy.config import (
    CloudflareCredentials,
    DeploymentConfig,
    PinataCredentials,
)


def fake_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


class FakeCloudflare:
    """Minimal in-memory stand-in for the Cloudflare v4 zones/dns_records API."""

    def __init__(self, zones=None, records=None):
        self.zones = zones if zones is not None else {"example.com": "zone-1"}
        self.records = records if records is not None else {}
        self.calls = []

    def request(self, method, url, headers=None, timeout=None, params=None, json=None):
        path = url.split("/client/v4", 1)[1]
        self.calls.append((method, path, params, json))
        if path == "/zones":
            zone_id = self.zones.get(params["name"])
            result = [{"id": zone_id, "name": params["name"]}] if zone_id else []
            return fake_response(payload={"success": True, "result": result})
        if method == "GET":
            result = [r for r in self.records.values() if r["name"] == params["name"]]
            return fake_response(payload={"success": True, "result": result})
        if method == "POST":
            record = dict(json, id=f"rec-{len(self.records) + 1}")
            self.records[record["id"]] = record
            return fake_response(payload={"success": True, "result": record})
        if method == "PUT":
            record_id = path.rsplit("/", 1)[1]
            record = dict(json, id=record_id)
            self.records[record_id] = record
            return fake_response(payload={"success": True, "result": record})
        raise AssertionError(f"unexpected call {method} {path}")


@pytest.fixture
def site_dir(tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>hello</h1>\n")
    return public


@pytest.fixture
def config(site_dir):
    return DeploymentConfig(
        public_dir=str(site_dir),
        site_domain="example.com",
        cloudflare=CloudflareCredentials(api_email="ops@example.com", api_key="cf-key"),
        pinata=PinataCredentials(api_key="pk", secret_api_key="sk"),
        copy_to_clipboard=True,
    )
