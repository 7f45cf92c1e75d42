"""Tests for certificate and macaroon loading."""

import pytest

from lnbridge.config.schema import CredentialData
from lnbridge.credentials import load_cert, load_macaroon
from lnbridge.utils.exceptions import ConfigurationError

PEM = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"


def test_cert_from_file(tmp_path) -> None:
    path = tmp_path / "tls.cert"
    path.write_text(PEM)
    assert load_cert(str(path)) == PEM


def test_cert_from_buffer() -> None:
    assert load_cert(CredentialData(data=PEM)) == PEM
    assert load_cert(CredentialData(data=PEM.encode())) == PEM


def test_cert_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError) as err:
        load_cert(str(tmp_path / "missing.cert"))
    assert err.value.fields == ["cert"]


def test_macaroon_file_is_hex_encoded(tmp_path) -> None:
    path = tmp_path / "admin.macaroon"
    path.write_bytes(b"\x02\x01\x03")
    assert load_macaroon(str(path)) == "020103"


def test_macaroon_buffer() -> None:
    assert load_macaroon(CredentialData(data=b"\x01\x02")) == "0102"
    assert load_macaroon(CredentialData(data="0201")) == "0201"


def test_wrong_type() -> None:
    with pytest.raises(ConfigurationError):
        load_macaroon(42)  # type: ignore[arg-type]
