"""TLS option derivation for database connections.

The effective TLS configuration is derived from two inputs: hints in the
connection URL (``ssl``, ``sslmode``) and explicit environment overrides.
Derivation follows conventional PostgreSQL client semantics:

- ``sslmode=disable`` or no hint at all: no TLS
- ``sslmode=require`` / ``sslmode=prefer``: encrypt, do not verify the peer
- ``sslmode=verify-ca`` / ``sslmode=verify-full`` or ``ssl=true``: encrypt and verify

An explicit reject-unauthorized override always wins over the URL.
"""

import base64
import binascii
import re
import ssl

from loguru import logger
from pydantic import BaseModel

from db_preflight.database.descriptor import ConnectionDescriptor
from db_preflight.settings import Settings

TRUTHY_FLAGS = ("1", "true")
FALSY_VERIFY_FLAGS = ("0", "false")
NO_VERIFY_SSLMODES = ("require", "prefer")
PEM_MARKER = "BEGIN CERTIFICATE"

_WHITESPACE = re.compile(r"\s+")


class TlsOverrides(BaseModel):
    """Environment-side TLS inputs."""

    model_config = {"frozen": True}

    ssl: bool = False
    reject_unauthorized: str | None = None
    ca: str | None = None
    ca_base64: str | None = None
    debug: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "TlsOverrides":
        return cls(
            ssl=settings.database_ssl,
            reject_unauthorized=settings.database_ssl_reject_unauthorized,
            ca=settings.database_ssl_ca,
            ca_base64=settings.database_ssl_ca_base64,
            debug=settings.database_ssl_debug,
        )


class TlsOptions(BaseModel):
    """Effective TLS configuration for the database connection."""

    model_config = {"frozen": True}

    enabled: bool = True
    verify: bool = True
    ca_certificate: str | None = None

    @property
    def ca_looks_like_pem(self) -> bool:
        return self.ca_certificate is not None and PEM_MARKER in self.ca_certificate


def _decode_ca_base64(encoded: str) -> str | None:
    cleaned = _WHITESPACE.sub("", encoded)
    if not cleaned:
        return None
    try:
        return base64.b64decode(cleaned, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        logger.debug("Ignoring CA certificate override that is not valid base64 UTF-8 text")
        return None


def derive_tls(descriptor: ConnectionDescriptor, overrides: TlsOverrides) -> TlsOptions | None:
    """Derive the effective TLS options.

    Args:
        descriptor: Parsed connection URL
        overrides: Environment overrides

    Returns:
        TlsOptions if TLS is enabled, None otherwise
    """
    ssl_param = descriptor.get_param("ssl")
    sslmode = descriptor.get_param("sslmode")

    enabled = overrides.ssl or ssl_param in TRUTHY_FLAGS or (sslmode is not None and sslmode != "disable")
    if not enabled:
        return None

    if overrides.reject_unauthorized is not None:
        verify = overrides.reject_unauthorized not in FALSY_VERIFY_FLAGS
    else:
        verify = sslmode not in NO_VERIFY_SSLMODES

    ca = overrides.ca
    if not ca and overrides.ca_base64:
        ca = _decode_ca_base64(overrides.ca_base64)

    options = TlsOptions(enabled=True, verify=verify, ca_certificate=ca or None)

    if overrides.debug:
        logger.info(
            "DB SSL debug: enabled={} verify={} sslmode={} has_ca={} ca_looks_like_pem={}",
            options.enabled,
            options.verify,
            sslmode,
            options.ca_certificate is not None,
            options.ca_looks_like_pem,
        )

    return options


def build_ssl_context(tls: TlsOptions) -> ssl.SSLContext:
    """Build the driver-side SSL context for the given options.

    Raises:
        ssl.SSLError: If the CA material cannot be loaded
    """
    context = ssl.create_default_context(cadata=tls.ca_certificate) if tls.ca_certificate else ssl.create_default_context()
    if not tls.verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context
