"""Tests for the ipfs-deploy command."""

import os
from unittest.mock import patch

from click.testing import CliRunner

from ipfsdeploy.deploy import DeploymentReport, StepResult
from ipfsdeploy.errors import DaemonUnreachable
from ipfsdeploy.main import cli, main

ENV = {
    "IPFS_DEPLOY_SITE_DOMAIN": "example.com",
    "IPFS_DEPLOY_CLOUDFLARE__API_TOKEN": "tok",
    "IPFS_DEPLOY_PINATA__API_KEY": "pk",
    "IPFS_DEPLOY_PINATA__SECRET_API_KEY": "sk",
}


def invoke(args, report=None, error=None):
    with patch("ipfsdeploy.main.Deployer") as deployer_cls, patch(
        "ipfsdeploy.main.detect_commit", return_value=None
    ):
        run = deployer_cls.return_value.run
        if error:
            run.side_effect = error
        else:
            run.return_value = report or DeploymentReport(cid="bafyABC123")
        result = CliRunner().invoke(cli, args, env=ENV)
    return result, deployer_cls


def test_builds_config_from_options_and_env(site_dir):
    result, deployer_cls = invoke(
        [str(site_dir), "--open", "-p", "pinata", "--require", "pinata", "--timeout", "5"]
    )

    assert result.exit_code == 0, result.output
    assert "ipfs.io/ipfs/bafyABC123" in result.output
    config = deployer_cls.call_args.args[0]
    assert config.public_dir == str(site_dir)
    assert config.site_domain == "example.com"
    assert config.open is True
    assert config.pinners == ("pinata",)
    assert config.required_providers == ("pinata",)
    assert config.cloudflare.api_token == "tok"
    assert config.pinata.secret_api_key == "sk"
    assert config.timeout == 5


def test_default_pinners(site_dir):
    result, deployer_cls = invoke([str(site_dir), "--no-dns"])
    assert result.exit_code == 0, result.output
    config = deployer_cls.call_args.args[0]
    assert config.pinners == ("pinata", "infura")
    assert config.update_dns is False


def test_fatal_error_exits_nonzero(site_dir):
    result, _ = invoke([str(site_dir)], error=DaemonUnreachable("ipfs is not installed"))
    assert result.exit_code == 1
    assert "ipfs is not installed" in result.output


def test_non_fatal_failures_still_exit_zero(site_dir):
    report = DeploymentReport(
        cid="bafyABC123",
        steps=[StepResult(step="dns", ok=False, error="zone not found")],
    )
    result, _ = invoke([str(site_dir)], report=report)
    assert result.exit_code == 0
    assert "non-fatal failure" in result.output
    assert "dns" in result.output


def test_dry_run_only_hashes(site_dir):
    with patch("ipfsdeploy.main.ipfs.add_directory", return_value="bafyDRY") as add, patch(
        "ipfsdeploy.main.Deployer"
    ) as deployer_cls:
        result = CliRunner().invoke(cli, [str(site_dir), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "bafyDRY"
    assert add.call_args.kwargs["only_hash"] is True
    deployer_cls.assert_not_called()


def test_main_loads_dotenv_from_working_directory(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("IPFS_DEPLOY_SITE_DOMAIN=from-dotenv.example.com\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("IPFS_DEPLOY_SITE_DOMAIN", raising=False)
    seen = {}

    def fake_cli():
        seen["domain"] = os.environ.get("IPFS_DEPLOY_SITE_DOMAIN")

    with patch("ipfsdeploy.main.cli", fake_cli):
        main()

    assert seen["domain"] == "from-dotenv.example.com"
