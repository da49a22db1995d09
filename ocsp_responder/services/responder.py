"""
OCSP (Online Certificate Status Protocol) Responder
Maps a status query to a signed attestation (RFC 6960)
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from cryptography import x509

from ocsp_responder.core.errors import ResponderError
from ocsp_responder.core.logging import get_logger
from ocsp_responder.models.status import (
    CertificateStatus,
    ResponseTemplate,
    RevocationState,
    StatusDecision,
    fits_int64,
)
from ocsp_responder.services.key_material import KeyMaterial
from ocsp_responder.services.revocation_store import RevocationStore
from ocsp_responder.services.signer import StatusCodec, issuer_hashes, hash_algorithm

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decide(state: RevocationState) -> StatusDecision:
    """
    Decision policy:
    - no record -> UNKNOWN
    - record not revoked -> GOOD
    - record revoked at T -> REVOKED at T, reason unspecified
    """
    if state.status == CertificateStatus.UNKNOWN:
        return StatusDecision(CertificateStatus.UNKNOWN)
    if state.status == CertificateStatus.GOOD:
        return StatusDecision(CertificateStatus.GOOD)
    return StatusDecision(
        CertificateStatus.REVOKED,
        revocation_time=state.revoked_at,
        revocation_reason=x509.ReasonFlags.unspecified,
    )


class StatusResponder:
    """Answers OCSP requests for one issuer from a RevocationStore"""

    def __init__(
        self,
        store: RevocationStore,
        codec: StatusCodec,
        keys: KeyMaterial,
        next_update_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize responder

        Args:
            store: Revocation store to consult
            codec: Parses requests and signs responses
            keys: Issuer certificate, responder certificate and responder key
            next_update_seconds: Validity window of a response; None leaves nextUpdate unset
            clock: Source of thisUpdate
        """
        self.store = store
        self.codec = codec
        self.keys = keys
        self.next_update_seconds = next_update_seconds
        self.clock = clock

    def handle(self, request_data: bytes) -> bytes:
        """
        Process a DER encoded OCSP request and return the signed response

        Raises:
            ResponderError: REQUEST_REJECTED for malformed requests or serials
                wider than 64 bits, INTERNAL_FAILURE for store or signer errors
        """
        query = self.codec.parse_status_query(request_data)

        if not fits_int64(query.serial):
            logger.warning(f"OCSP request for serial wider than 64 bits: {query.serial:x}")
            raise ResponderError.rejected("Requested serial number is larger than 64 bits")

        self._check_issuer(query)

        state = self.store.lookup(query.serial)
        decision = decide(state)

        if decision.status == CertificateStatus.UNKNOWN:
            logger.warning(f"OCSP request for unknown certificate: {query.serial}")
        else:
            logger.info(f"OCSP response: Certificate {query.serial} is {decision.status.name}")

        template = self.build_template(query, decision)
        return self.codec.sign(
            self.keys.issuer_cert,
            self.keys.responder_cert,
            template,
            self.keys.responder_key,
        )

    def build_template(self, query, decision: StatusDecision) -> ResponseTemplate:
        this_update = self.clock()
        next_update = None
        if self.next_update_seconds:
            next_update = this_update + timedelta(seconds=self.next_update_seconds)
        return ResponseTemplate(
            query=query,
            decision=decision,
            this_update=this_update,
            next_update=next_update,
        )

    def error_response(self, error: ResponderError) -> bytes:
        return self.codec.error_response(error.kind)

    def _check_issuer(self, query) -> None:
        # Only logged; responses always describe our issuer
        if query.issuer_name_hash is None or query.issuer_key_hash is None:
            return
        try:
            expected = issuer_hashes(self.keys.issuer_cert, hash_algorithm(query.hash_algorithm))
        except ValueError:
            return
        if expected != (query.issuer_name_hash, query.issuer_key_hash):
            logger.warning(f"OCSP request for serial {query.serial} names a different issuer")
