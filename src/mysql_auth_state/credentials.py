"""Default credential bundle for a session that has never been paired.

The bundle layout follows what the messaging protocol layer expects to find
in ``state.creds``. Signing the pre-key uses the protocol's own signature
scheme, so it is delegated to a ``signer`` supplied by that layer.
"""

from __future__ import annotations

import base64
import secrets
from collections.abc import Callable
from typing import Any

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey

# Type tag prepended to Curve25519 public keys before signing
KEY_BUNDLE_TYPE = b"\x05"

AuthenticationCreds = dict[str, Any]
Signer = Callable[[bytes, bytes], bytes]


def generate_key_pair() -> dict[str, bytes]:
    """Generate a Curve25519 key pair as raw 32-byte keys."""
    private_key = X25519PrivateKey.generate()
    return {
        "public": private_key.public_key().public_bytes_raw(),
        "private": private_key.private_bytes_raw(),
    }


def generate_registration_id() -> int:
    """Random 14-bit registration id."""
    return secrets.randbits(14)


def signed_key_pair(
    identity_key: dict[str, bytes],
    key_id: int,
    signer: Signer | None = None,
) -> dict[str, Any]:
    """Generate a pre-key pair signed by the identity key.

    Parameters
    ----------
    identity_key
        The signed identity key pair
    key_id
        Identifier of the pre-key
    signer
        ``signer(private_key, message)`` from the protocol layer. Without
        one, the signature is left empty for the protocol layer to fill.

    Returns
    -------
    Dict with ``keyPair``, ``signature`` and ``keyId``
    """
    pre_key = generate_key_pair()
    signature = None
    if signer is not None:
        message = KEY_BUNDLE_TYPE + pre_key["public"]
        signature = signer(identity_key["private"], message)

    return {"keyPair": pre_key, "signature": signature, "keyId": key_id}


def init_auth_creds(signer: Signer | None = None) -> AuthenticationCreds:
    """Create a fresh, unregistered credential bundle."""
    identity_key = generate_key_pair()
    return {
        "noiseKey": generate_key_pair(),
        "pairingEphemeralKeyPair": generate_key_pair(),
        "signedIdentityKey": identity_key,
        "signedPreKey": signed_key_pair(identity_key, 1, signer),
        "registrationId": generate_registration_id(),
        "advSecretKey": base64.b64encode(secrets.token_bytes(32)).decode("ascii"),
        "processedHistoryMessages": [],
        "nextPreKeyId": 1,
        "firstUnuploadedPreKeyId": 1,
        "accountSyncCounter": 0,
        "accountSettings": {"unarchiveChats": False},
        "registered": False,
    }
