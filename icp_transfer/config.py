import os
from dataclasses import dataclass

from icp_transfer.identity import ED25519, KEY_TYPES

DEFAULT_ROSETTA_URLS = {
    "local": "http://localhost:8081",
    "mainnet": "https://rosetta-api.internetcomputer.org",
}


@dataclass
class Config:
    network: str = "local"
    rosetta_url: str = DEFAULT_ROSETTA_URLS["local"]
    timeout: float = 30
    key_type: str = ED25519

    def __post_init__(self):
        if self.network not in DEFAULT_ROSETTA_URLS:
            raise ValueError(f"Unknown network '{self.network}', expected one of {', '.join(DEFAULT_ROSETTA_URLS)}")
        if self.key_type not in KEY_TYPES:
            raise ValueError(f"Unknown key type '{self.key_type}', expected one of {', '.join(KEY_TYPES)}")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")

    @staticmethod
    def from_env(environ=os.environ, **overrides) -> "Config":
        """
        Read ICP_NETWORK, ROSETTA_URL, ROSETTA_TIMEOUT and ICP_KEY_TYPE.

        Keyword overrides that are not None win over the environment; the
        Rosetta URL defaults to the well-known node of the selected network.
        """
        overrides = {k: v for k, v in overrides.items() if v is not None}
        network = overrides.get("network", environ.get("ICP_NETWORK", "local")).strip().lower()
        rosetta_url = overrides.get("rosetta_url", environ.get("ROSETTA_URL", DEFAULT_ROSETTA_URLS.get(network, "")))
        try:
            timeout = float(overrides.get("timeout", environ.get("ROSETTA_TIMEOUT", 30)))
        except ValueError:
            raise ValueError(f"ROSETTA_TIMEOUT must be a number, got '{environ.get('ROSETTA_TIMEOUT')}'") from None
        key_type = overrides.get("key_type", environ.get("ICP_KEY_TYPE", ED25519)).strip().lower()
        return Config(network=network, rosetta_url=rosetta_url, timeout=timeout, key_type=key_type)
