"""
OCSP codec - ocsp_responder/services/signer.py
Decodes DER OCSP requests and encodes signed DER OCSP responses (RFC 6960)
"""
from abc import ABC, abstractmethod

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes
from cryptography.x509 import ocsp

from ocsp_responder.core.errors import ErrorKind, ResponderError
from ocsp_responder.core.logging import get_logger
from ocsp_responder.models.status import CertificateStatus, ResponseTemplate, StatusQuery

logger = get_logger(__name__)

HASH_ALGORITHMS = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

_CERT_STATUS = {
    CertificateStatus.GOOD: ocsp.OCSPCertStatus.GOOD,
    CertificateStatus.REVOKED: ocsp.OCSPCertStatus.REVOKED,
    CertificateStatus.UNKNOWN: ocsp.OCSPCertStatus.UNKNOWN,
}

_ERROR_STATUS = {
    ErrorKind.REQUEST_REJECTED: ocsp.OCSPResponseStatus.MALFORMED_REQUEST,
    ErrorKind.INTERNAL_FAILURE: ocsp.OCSPResponseStatus.INTERNAL_ERROR,
}


def hash_algorithm(name: str) -> hashes.HashAlgorithm:
    try:
        return HASH_ALGORITHMS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported hash algorithm: {name}") from None


def public_key_bits(cert: x509.Certificate) -> bytes:
    """Contents of the subjectPublicKey BIT STRING, as hashed into a CertID"""
    key = cert.public_key()
    if isinstance(key, rsa.RSAPublicKey):
        return key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.PKCS1)
    if isinstance(key, ec.EllipticCurvePublicKey):
        return key.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)
    if isinstance(key, (ed25519.Ed25519PublicKey, ed448.Ed448PublicKey)):
        return key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
    raise ValueError(f"Unsupported issuer key type: {type(key).__name__}")


def issuer_hashes(issuer_cert: x509.Certificate, algorithm: hashes.HashAlgorithm):
    """Return (issuer_name_hash, issuer_key_hash) for issuer_cert"""
    name_digest = hashes.Hash(algorithm)
    name_digest.update(issuer_cert.subject.public_bytes())
    key_digest = hashes.Hash(algorithm)
    key_digest.update(public_key_bits(issuer_cert))
    return name_digest.finalize(), key_digest.finalize()


class StatusCodec(ABC):
    """Capability to parse status queries and produce signed responses"""

    @abstractmethod
    def parse_status_query(self, data: bytes) -> StatusQuery:
        """Raise a REQUEST_REJECTED ResponderError if data is not a usable query"""

    @abstractmethod
    def sign(
        self,
        issuer_cert: x509.Certificate,
        responder_cert: x509.Certificate,
        template: ResponseTemplate,
        key: CertificateIssuerPrivateKeyTypes,
    ) -> bytes:
        """Raise an INTERNAL_FAILURE ResponderError if signing fails"""

    @abstractmethod
    def error_response(self, kind: ErrorKind) -> bytes:
        """Unsigned, unsuccessful response for a failed request"""


class CryptographyCodec(StatusCodec):
    """StatusCodec backed by cryptography.x509.ocsp"""

    def __init__(self, signature_hash: str = "sha256"):
        self.signature_hash = hash_algorithm(signature_hash)

    def parse_status_query(self, data: bytes) -> StatusQuery:
        if not data:
            raise ResponderError.rejected("Empty OCSP request")
        try:
            request = ocsp.load_der_ocsp_request(data)
        except NotImplementedError as e:
            # e.g. more than one certificate in the request list
            raise ResponderError.rejected(str(e)) from e
        except ValueError as e:
            raise ResponderError.rejected("Unable to parse OCSP request") from e

        try:
            algorithm = request.hash_algorithm
        except UnsupportedAlgorithm as e:
            raise ResponderError.rejected("Unsupported CertID hash algorithm") from e
        if algorithm.name not in HASH_ALGORITHMS:
            raise ResponderError.rejected(f"Unsupported CertID hash algorithm: {algorithm.name}")

        return StatusQuery(
            serial=request.serial_number,
            hash_algorithm=algorithm.name,
            issuer_name_hash=request.issuer_name_hash,
            issuer_key_hash=request.issuer_key_hash,
        )

    def sign(self, issuer_cert, responder_cert, template, key) -> bytes:
        decision = template.decision
        try:
            algorithm = hash_algorithm(template.query.hash_algorithm)
            name_hash, key_hash = issuer_hashes(issuer_cert, algorithm)

            builder = ocsp.OCSPResponseBuilder().add_response_by_hash(
                issuer_name_hash=name_hash,
                issuer_key_hash=key_hash,
                serial_number=template.query.serial,
                algorithm=algorithm,
                cert_status=_CERT_STATUS[decision.status],
                this_update=template.this_update,
                next_update=template.next_update,
                revocation_time=decision.revocation_time,
                revocation_reason=decision.revocation_reason,
            )
            builder = builder.responder_id(ocsp.OCSPResponderEncoding.NAME, responder_cert)
            builder = builder.certificates([responder_cert])

            response = builder.sign(key, self._signature_hash_for(key))
            return response.public_bytes(serialization.Encoding.DER)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            logger.error(f"Failed to sign OCSP response for serial {template.query.serial}: {e}")
            raise ResponderError.internal("Failed to sign OCSP response") from e

    def error_response(self, kind: ErrorKind) -> bytes:
        response = ocsp.OCSPResponseBuilder.build_unsuccessful(_ERROR_STATUS[kind])
        return response.public_bytes(serialization.Encoding.DER)

    def _signature_hash_for(self, key):
        # EdDSA signs the message itself, no separate digest
        if isinstance(key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)):
            return None
        return self.signature_hash
