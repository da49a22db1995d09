from ocsp_responder.models.revocation import RevokedCertificate
from ocsp_responder.models.status import (
    CertificateStatus,
    RevocationRecord,
    RevocationState,
    ResponseTemplate,
    StatusDecision,
    StatusQuery,
)

__all__ = [
    "RevokedCertificate",
    "CertificateStatus",
    "RevocationRecord",
    "RevocationState",
    "ResponseTemplate",
    "StatusDecision",
    "StatusQuery",
]
