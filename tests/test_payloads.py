import pytest

from ikev2.payloads import (
    Authentication,
    Certificate,
    CertificateRequest,
    Delete,
    Encrypted,
    IdentificationInitiator,
    IdentificationResponder,
    KeyExchange,
    Nonce,
    Notification,
    PayloadError,
    PayloadType,
)

DATA20 = bytes([
    0x7d, 0x09, 0x18, 0x42, 0x60, 0x9c, 0x9e, 0x20,
    0x56, 0x9f, 0xc0, 0x39, 0xda, 0x3f, 0x22, 0x2a,
    0xb8, 0x56, 0x81, 0x8a,
])

AUTH = Authentication(authentication_method=2, authentication_data=DATA20)
AUTH_BYTES = bytes([0x02, 0x00, 0x00, 0x00]) + DATA20

FQDN = bytes([
    0x6e, 0x33, 0x69, 0x77, 0x66, 0x2e, 0x73, 0x61,
    0x76, 0x69, 0x61, 0x68, 0x35, 0x67, 0x63, 0x2e,
    0x6f, 0x72, 0x67,
])
CERT_BYTES = bytes([0x02]) + FQDN

NAT_DATA = bytes([
    0x50, 0xc4, 0xc2, 0xbe, 0x8e, 0x3f, 0xd9, 0x16,
    0x19, 0x24, 0x65, 0x0d, 0x14, 0x5d, 0x4f, 0xf6,
    0x46, 0xd8, 0x9d, 0x75,
])
NOTIFICATION = Notification(protocol_id=0, notify_message_type=0x4004,
                            spi=b"\x01\x02\x03", notification_data=NAT_DATA)
NOTIFICATION_BYTES = bytes([0x00, 0x03, 0x40, 0x04, 0x01, 0x02, 0x03]) + NAT_DATA


def test_authentication_marshal():
    assert AUTH.marshal() == AUTH_BYTES


def test_authentication_unmarshal():
    assert Authentication.unmarshal(AUTH_BYTES) == AUTH


def test_authentication_unmarshal_short():
    with pytest.raises(PayloadError):
        Authentication.unmarshal(b"\x01\x02\x03\x04")


def test_certificate_marshal():
    assert Certificate(certificate_encoding=2, certificate_data=FQDN).marshal() == CERT_BYTES


def test_certificate_unmarshal():
    assert Certificate.unmarshal(CERT_BYTES) == Certificate(2, FQDN)


def test_certificate_unmarshal_short():
    with pytest.raises(PayloadError):
        Certificate.unmarshal(b"\x01")


def test_certificate_request_roundtrip():
    req = CertificateRequest(certificate_encoding=2, certification_authority=FQDN)
    assert req.marshal() == CERT_BYTES
    assert CertificateRequest.unmarshal(CERT_BYTES) == req


def test_certificate_request_unmarshal_short():
    with pytest.raises(PayloadError):
        CertificateRequest.unmarshal(b"\x01")


def test_delete_marshal_wrong_count():
    with pytest.raises(PayloadError):
        Delete(protocol_id=3, spi_size=4, number_of_spi=1, spis=[1, 2, 3]).marshal()


def test_delete_marshal_ike():
    assert Delete(protocol_id=1).marshal() == b"\x01\x00\x00\x00"


ESP_DELETE_BYTES = bytes([
    0x03, 0x04, 0x00, 0x04, 0x00, 0x00, 0x00, 0x01,
    0x00, 0x00, 0x00, 0x02, 0x00, 0x00, 0x00, 0x03,
    0x00, 0x00, 0x00, 0x04,
])


def test_delete_marshal_esp():
    d = Delete(protocol_id=3, spi_size=4, number_of_spi=4, spis=[1, 2, 3, 4])
    assert d.marshal() == ESP_DELETE_BYTES


@pytest.mark.parametrize("data", [b"\x01\x02\x03", b"\x01\x02\x03\x04\x05"])
def test_delete_unmarshal_errors(data):
    with pytest.raises(PayloadError):
        Delete.unmarshal(data)


def test_delete_unmarshal():
    assert Delete.unmarshal(ESP_DELETE_BYTES) == Delete(3, 4, 4, [1, 2, 3, 4])


def test_encrypted_marshal_empty():
    with pytest.raises(PayloadError):
        Encrypted().marshal()


def test_encrypted_roundtrip():
    assert Encrypted(encrypted_data=DATA20).marshal() == DATA20
    assert Encrypted.unmarshal(DATA20) == Encrypted(next_payload=0, encrypted_data=DATA20)


@pytest.mark.parametrize("cls", [IdentificationInitiator, IdentificationResponder])
def test_identification_marshal(cls):
    assert cls(id_type=11, id_data=b"\x55\x45").marshal() == bytes([0xb, 0, 0, 0, 0x55, 0x45])


@pytest.mark.parametrize("cls", [IdentificationInitiator, IdentificationResponder])
def test_identification_unmarshal(cls):
    result = cls.unmarshal(bytes([0xb, 0, 0, 0, 0x55, 0x45]))
    assert result == cls(id_type=11, id_data=b"\x55\x45")
    assert isinstance(result, cls)


@pytest.mark.parametrize("cls", [IdentificationInitiator, IdentificationResponder])
def test_identification_unmarshal_short(cls):
    with pytest.raises(PayloadError):
        cls.unmarshal(b"\x01\x02\x03")


KE_CASES = [
    (2, bytes(range(1, 9)),
     bytes([0x00, 0x02, 0x00, 0x00, 1, 2, 3, 4, 5, 6, 7, 8])),
    (14, bytes([0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77, 0x88]),
     bytes([0x00, 0x0e, 0x00, 0x00, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77, 0x88])),
]


@pytest.mark.parametrize("group,data,raw", KE_CASES)
def test_key_exchange_marshal(group, data, raw):
    assert KeyExchange(group, data).marshal() == raw


@pytest.mark.parametrize("group,data,raw", KE_CASES)
def test_key_exchange_unmarshal(group, data, raw):
    assert KeyExchange.unmarshal(raw) == KeyExchange(group, data)


def test_key_exchange_unmarshal_short():
    with pytest.raises(PayloadError):
        KeyExchange.unmarshal(b"\x01\x02\x03")


def test_nonce_roundtrip():
    assert Nonce(DATA20).marshal() == DATA20
    assert Nonce.unmarshal(DATA20) == Nonce(nonce_data=DATA20)


def test_notification_marshal():
    assert NOTIFICATION.marshal() == NOTIFICATION_BYTES


def test_notification_unmarshal():
    assert Notification.unmarshal(NOTIFICATION_BYTES) == NOTIFICATION


@pytest.mark.parametrize("data", [b"\x01\x02\x03", b"\x01\x02\x03\x04\x05"])
def test_notification_unmarshal_errors(data):
    with pytest.raises(PayloadError):
        Notification.unmarshal(data)


def test_notification_spi_too_long():
    with pytest.raises(PayloadError):
        Notification(spi=bytes(256)).marshal()


def test_empty_input_gives_default_payload():
    assert Authentication.unmarshal(b"") == Authentication()
    assert Notification.unmarshal(b"") == Notification()
    assert Delete.unmarshal(b"").spis == []


def test_payload_types():
    assert Encrypted.unmarshal(DATA20).payload_type == PayloadType.SK == 46
    assert Notification.unmarshal(NOTIFICATION_BYTES).payload_type == 41
    assert IdentificationResponder.unmarshal(
        bytes([0xb, 0, 0, 0, 0x55, 0x45])
    ).payload_type == PayloadType.IDR