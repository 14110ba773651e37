"""Remote pinning providers."""

import requests

from ipfsdeploy.config import DeploymentConfig
from ipfsdeploy.errors import NetworkTimeout, RemotePinFailed

PINATA_PIN_URL = "https://api.pinata.cloud/pinning/pinByHash"
INFURA_PIN_URL = "https://ipfs.infura.io:5001/api/v0/pin/add"


class Pinner:
    name = ""
    display_name = ""

    def __init__(self, timeout: float | None = None, session=None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def request_pin(
        self, cid: str, metadata: dict[str, str], host_hints: list[str]
    ) -> dict:
        raise NotImplementedError

    def _post(self, url: str, **kwargs) -> dict:
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise NetworkTimeout(
                f"Pin request to {self.display_name}", self.timeout
            ) from e
        except requests.exceptions.RequestException as e:
            raise RemotePinFailed(self.display_name, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise RemotePinFailed(
                self.display_name,
                f"HTTP {response.status_code}: {response.text[:200]}",
            )
        try:
            return response.json()
        except ValueError:
            return {}


class PinataPinner(Pinner):
    name = "pinata"
    display_name = "pinata.cloud"

    def __init__(self, api_key: str, secret_api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.secret_api_key = secret_api_key

    def request_pin(
        self, cid: str, metadata: dict[str, str], host_hints: list[str]
    ) -> dict:
        keyvalues = {k: v for k, v in metadata.items() if k != "name"}
        body = {
            "hashToPin": cid,
            "pinataMetadata": {
                "name": metadata.get("name", cid),
                "keyvalues": keyvalues,
            },
            "pinataOptions": {"hostNodes": host_hints},
        }
        headers = {
            "pinata_api_key": self.api_key,
            "pinata_secret_api_key": self.secret_api_key,
        }
        return self._post(PINATA_PIN_URL, json=body, headers=headers)


class InfuraPinner(Pinner):
    """Infura's HTTP API mirrors the daemon RPC and has no host hints."""

    name = "infura"
    display_name = "infura.io"

    def __init__(self, auth: tuple[str, str] | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.auth = auth

    def request_pin(
        self, cid: str, metadata: dict[str, str], host_hints: list[str]
    ) -> dict:
        params = {"arg": cid, "recursive": "true"}
        return self._post(INFURA_PIN_URL, params=params, auth=self.auth)


def build_pinners(config: DeploymentConfig, session=None) -> list[Pinner]:
    """Instantiate the configured providers in configured order."""
    pinners: list[Pinner] = []
    for name in config.pinners:
        if name == "pinata":
            pinners.append(
                PinataPinner(
                    config.pinata.api_key,
                    config.pinata.secret_api_key,
                    timeout=config.timeout,
                    session=session,
                )
            )
        elif name == "infura":
            pinners.append(
                InfuraPinner(
                    auth=config.infura.auth(), timeout=config.timeout, session=session
                )
            )
    return pinners
