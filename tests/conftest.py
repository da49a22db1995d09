"""Shared fixtures: a throwaway PKI, an in-memory store and the app."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509 import ocsp
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from fastapi.testclient import TestClient

from ocsp_responder.core.config import Settings
from ocsp_responder.main import create_app
from ocsp_responder.models.status import RevocationRecord
from ocsp_responder.services.key_material import KeyMaterial
from ocsp_responder.services.responder import StatusResponder
from ocsp_responder.services.revocation_store import RevocationStore
from ocsp_responder.services.signer import CryptographyCodec, issuer_hashes

REVOKED_AT = datetime(2019, 10, 12, 7, 20, 50, tzinfo=timezone.utc)

# Serials 1 and 2 not revoked, 3 and 4 revoked
SEED_RECORDS = [
    RevocationRecord.not_revoked(1),
    RevocationRecord.not_revoked(2),
    RevocationRecord.revoked_on(3, REVOKED_AT),
    RevocationRecord.revoked_on(4, REVOKED_AT),
]


@dataclass
class PKI:
    ca_key: ec.EllipticCurvePrivateKey
    ca_cert: x509.Certificate
    responder_key: ec.EllipticCurvePrivateKey
    responder_cert: x509.Certificate
    client_cert: x509.Certificate  # serial 1
    revoked_client_cert: x509.Certificate  # serial 3


def _name(common_name):
    return x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test CA"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])


def _certificate(subject, issuer, public_key, signing_key, serial, ca=False, ocsp_signing=False):
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(serial)
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    )
    if ocsp_signing:
        builder = builder.add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.OCSP_SIGNING]),
            critical=False,
        )
    return builder.sign(signing_key, hashes.SHA256())


@pytest.fixture(scope="session")
def pki():
    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_name = _name("Test Root CA")
    ca_cert = _certificate(ca_name, ca_name, ca_key.public_key(), ca_key, 1000, ca=True)

    responder_key = ec.generate_private_key(ec.SECP256R1())
    responder_cert = _certificate(
        _name("Test OCSP Responder"), ca_name, responder_key.public_key(), ca_key, 1001,
        ocsp_signing=True,
    )

    client_key = ec.generate_private_key(ec.SECP256R1())
    client_cert = _certificate(_name("client one"), ca_name, client_key.public_key(), ca_key, 1)
    revoked_client_cert = _certificate(_name("client three"), ca_name, client_key.public_key(), ca_key, 3)

    return PKI(
        ca_key=ca_key,
        ca_cert=ca_cert,
        responder_key=responder_key,
        responder_cert=responder_cert,
        client_cert=client_cert,
        revoked_client_cert=revoked_client_cert,
    )


@pytest.fixture
def key_files(tmp_path, pki):
    """Write the PKI to PEM files and return their paths"""
    paths = {
        "ca": tmp_path / "ca.pem",
        "responder": tmp_path / "responder.pem",
        "responder_key": tmp_path / "responder_key.pem",
    }
    paths["ca"].write_bytes(pki.ca_cert.public_bytes(serialization.Encoding.PEM))
    paths["responder"].write_bytes(pki.responder_cert.public_bytes(serialization.Encoding.PEM))
    paths["responder_key"].write_bytes(
        pki.responder_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return {name: str(path) for name, path in paths.items()}


@pytest.fixture
def settings(key_files):
    return Settings(
        CA_CERT=key_files["ca"],
        RESPONDER_CERT=key_files["responder"],
        RESPONDER_KEY=key_files["responder_key"],
        DATABASE_URL="sqlite://",
        OCSP_RESPONSE_TIMEOUT_SECONDS=10.0,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def store():
    """In-memory store seeded with serials 1-4"""
    store = RevocationStore(database_url="sqlite://")
    store.init()
    store.bulk_replace(SEED_RECORDS)
    yield store
    store.teardown()


@pytest.fixture
def keys(pki):
    return KeyMaterial(
        issuer_cert=pki.ca_cert,
        responder_cert=pki.responder_cert,
        responder_key=pki.responder_key,
    )


@pytest.fixture
def responder(store, keys):
    return StatusResponder(store=store, codec=CryptographyCodec(), keys=keys)


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store=store)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def ocsp_request(pki):
    """Build a DER OCSP request for a serial issued by the test CA"""
    def build(serial, algorithm=None):
        algorithm = algorithm or hashes.SHA1()
        name_hash, key_hash = issuer_hashes(pki.ca_cert, algorithm)
        request = ocsp.OCSPRequestBuilder().add_certificate_by_hash(
            name_hash, key_hash, serial, algorithm
        ).build()
        return request.public_bytes(serialization.Encoding.DER)
    return build


@pytest.fixture
def verify_response(pki):
    """Parse a DER OCSP response and check it is signed by the responder"""
    def verify(data):
        response = ocsp.load_der_ocsp_response(data)
        assert response.response_status == ocsp.OCSPResponseStatus.SUCCESSFUL
        pki.responder_cert.public_key().verify(
            response.signature,
            response.tbs_response_bytes,
            ec.ECDSA(response.signature_hash_algorithm),
        )
        return response
    return verify
