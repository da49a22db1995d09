"""Tests for loading certificates and keys from PEM files."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ocsp_responder.core.errors import ErrorKind, KeyMaterialError
from ocsp_responder.services.key_material import (
    load_certificate,
    load_key_material,
    load_private_key,
)


def test_load_key_material(settings, pki):
    keys = load_key_material(settings)

    assert keys.issuer_cert == pki.ca_cert
    assert keys.responder_cert == pki.responder_cert
    assert keys.responder_key.private_numbers() == pki.responder_key.private_numbers()


def test_responder_may_be_the_issuer(settings, key_files, tmp_path, pki):
    ca_key = tmp_path / "ca_key.pem"
    ca_key.write_bytes(pki.ca_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    same = settings.model_copy(update={"RESPONDER_CERT": key_files["ca"], "RESPONDER_KEY": str(ca_key)})

    keys = load_key_material(same)

    assert keys.responder_cert == keys.issuer_cert


def test_encrypted_key(tmp_path, pki):
    path = tmp_path / "encrypted.pem"
    path.write_bytes(pki.responder_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.BestAvailableEncryption(b"secret"),
    ))

    assert isinstance(load_private_key(str(path), "secret"), ec.EllipticCurvePrivateKey)
    with pytest.raises(KeyMaterialError):
        load_private_key(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(KeyMaterialError) as exc_info:
        load_certificate(str(tmp_path / "nope.pem"))
    assert exc_info.value.kind == ErrorKind.INTERNAL_FAILURE


def test_not_pem(tmp_path):
    path = tmp_path / "garbage.pem"
    path.write_text("hello")

    with pytest.raises(KeyMaterialError):
        load_certificate(str(path))
    with pytest.raises(KeyMaterialError):
        load_private_key(str(path))


def test_key_does_not_match_certificate(settings, key_files):
    mismatched = settings.model_copy(update={"RESPONDER_CERT": key_files["ca"]})

    with pytest.raises(KeyMaterialError, match="does not match"):
        load_key_material(mismatched)
