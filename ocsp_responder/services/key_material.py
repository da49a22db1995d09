from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cryptography import x509
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes

from ocsp_responder.core.config import Settings
from ocsp_responder.core.errors import KeyMaterialError
from ocsp_responder.core.logging import get_logger

SIGNING_KEY_TYPES = (
    rsa.RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
    ed25519.Ed25519PrivateKey,
    ed448.Ed448PrivateKey,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class KeyMaterial:
    """Issuer certificate plus the responder's certificate and signing key"""
    issuer_cert: x509.Certificate
    responder_cert: x509.Certificate
    responder_key: CertificateIssuerPrivateKeyTypes


def _read(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise KeyMaterialError.internal(f"Cannot read {path}: {e.strerror or e}") from e


def load_certificate(path: str) -> x509.Certificate:
    """Load a PEM encoded certificate"""
    data = _read(path)
    try:
        return x509.load_pem_x509_certificate(data, default_backend())
    except ValueError as e:
        raise KeyMaterialError.internal(f"PEM parsing failure: {path}") from e


def load_private_key(path: str, password: Optional[str] = None) -> CertificateIssuerPrivateKeyTypes:
    """Load a PEM encoded private key usable for signing OCSP responses"""
    data = _read(path)
    try:
        key = serialization.load_pem_private_key(
            data,
            password=password.encode() if password else None,
            backend=default_backend(),
        )
    except (ValueError, TypeError) as e:
        raise KeyMaterialError.internal(f"PEM parsing failure: {path}") from e

    if not isinstance(key, SIGNING_KEY_TYPES):
        raise KeyMaterialError.internal(f"Key type {type(key).__name__} cannot sign responses: {path}")
    return key


def load_key_material(settings: Settings) -> KeyMaterial:
    """
    Load CA certificate, responder certificate and responder key.
    Any failure here is fatal; the server must not start without them.
    """
    issuer_cert = load_certificate(settings.CA_CERT)
    responder_cert = load_certificate(settings.RESPONDER_CERT)
    responder_key = load_private_key(settings.RESPONDER_KEY, settings.RESPONDER_KEY_PASSWORD)

    if responder_cert.public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    ) != responder_key.public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    ):
        raise KeyMaterialError.internal("Responder key does not match responder certificate")

    logger.info(f"Issuer: {issuer_cert.subject.rfc4514_string()}")
    logger.info(f"Responder: {responder_cert.subject.rfc4514_string()}")
    return KeyMaterial(issuer_cert=issuer_cert, responder_cert=responder_cert, responder_key=responder_key)
