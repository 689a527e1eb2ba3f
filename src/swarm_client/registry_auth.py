""" Encoding of registry credentials as expected by the docker engine

The engine reads them from the X-Registry-Auth header as base64url-encoded JSON

SEE https://docs.docker.com/engine/api/v1.41/#section/Authentication
"""

import base64
import json


def encode_registry_auth(
    *, username: str, password: str, server_address: str
) -> str:
    auth_config = {
        "username": username,
        "password": password,
        "serveraddress": server_address,
    }
    payload = json.dumps(auth_config, separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode()).decode()


def decode_registry_auth(encoded_registry_auth: str) -> dict[str, str]:
    # NOTE: clients are not consistent with padding
    padding = "=" * (-len(encoded_registry_auth) % 4)
    payload = base64.urlsafe_b64decode(encoded_registry_auth + padding)
    auth_config: dict[str, str] = json.loads(payload)
    return auth_config
