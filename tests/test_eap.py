import pytest

from ikev2.eap import (
    EAP,
    VENDOR_ID_3GPP,
    VENDOR_TYPE_EAP5G,
    EAPCode,
    EAPExpanded,
    EAPIdentity,
    EAPNak,
    EAPNotification,
)
from ikev2.payloads import PayloadError, PayloadType

DATA = bytes([
    0x7D, 0x09, 0x18, 0x42, 0x60, 0x9C, 0x9E, 0x20,
    0x56, 0x9F, 0xC0, 0x39, 0xDA, 0x3F, 0x22, 0x2A,
    0xB8, 0x56, 0x81, 0x8A,
])

EAP_IDENTITY = EAP(code=EAPCode.REQUEST, identifier=9, type_data=[EAPIdentity(identity_data=DATA)])
EAP_IDENTITY_BYTES = bytes([0x01, 0x09, 0x00, 0x19, 0x01]) + DATA

EAP_NOTIFICATION = EAP(code=EAPCode.REQUEST, identifier=9,
                       type_data=[EAPNotification(notification_data=DATA)])
EAP_NOTIFICATION_BYTES = bytes([0x01, 0x09, 0x00, 0x19, 0x02]) + DATA

EAP_NAK = EAP(code=EAPCode.REQUEST, identifier=9, type_data=[EAPNak(nak_data=DATA)])
EAP_NAK_BYTES = bytes([0x01, 0x09, 0x00, 0x19, 0x03]) + DATA

EXPANDED = EAPExpanded(vendor_id=VENDOR_ID_3GPP, vendor_type=VENDOR_TYPE_EAP5G, vendor_data=DATA)
EXPANDED_BYTES = bytes([0xFE, 0x00, 0x28, 0xAF, 0x00, 0x00, 0x00, 0x03]) + DATA
EAP_EXPANDED = EAP(code=EAPCode.REQUEST, identifier=9, type_data=[EXPANDED])
EAP_EXPANDED_BYTES = bytes([0x01, 0x09, 0x00, 0x20]) + EXPANDED_BYTES


@pytest.mark.parametrize("eap, expected", [
    (EAP_IDENTITY, EAP_IDENTITY_BYTES),
    (EAP_NOTIFICATION, EAP_NOTIFICATION_BYTES),
    (EAP_NAK, EAP_NAK_BYTES),
    (EAP_EXPANDED, EAP_EXPANDED_BYTES),
])
def test_eap_marshal(eap, expected):
    assert eap.marshal() == expected


@pytest.mark.parametrize("type_data", [EAPIdentity(), EAPNotification(), EAPNak()])
def test_eap_marshal_empty_type_data(type_data):
    with pytest.raises(PayloadError):
        EAP(code=EAPCode.REQUEST, identifier=9, type_data=[type_data]).marshal()


@pytest.mark.parametrize("data, expected", [
    (EAP_IDENTITY_BYTES, EAP_IDENTITY),
    (EAP_NOTIFICATION_BYTES, EAP_NOTIFICATION),
    (EAP_NAK_BYTES, EAP_NAK),
    (EAP_EXPANDED_BYTES, EAP_EXPANDED),
])
def test_eap_unmarshal(data, expected):
    assert EAP.unmarshal(data) == expected


@pytest.mark.parametrize("data", [
    bytes([0x01, 0x02, 0x03]),
    bytes([0x01, 0x02, 0x00, 0x03]),
    bytes([0x01, 0x02, 0x00, 0x07, 0x01]),
    bytes([0x01, 0x09, 0x00, 0x20, 0xFE, 0x00, 0x28]),
    bytes([0x01, 0x09, 0x00, 0x05, 0x63]),
])
def test_eap_unmarshal_errors(data):
    with pytest.raises(PayloadError):
        EAP.unmarshal(data)


def test_eap_success_round_trip():
    eap = EAP(code=EAPCode.SUCCESS, identifier=5)
    encoded = eap.marshal()
    assert encoded == bytes([0x03, 0x05, 0x00, 0x04])
    assert EAP.unmarshal(encoded) == eap


def test_eap_payload_type():
    decoded = EAP.unmarshal(bytes([0x03, 0x05, 0x00, 0x04]))
    assert decoded.payload_type == PayloadType.EAP == 48


def test_add_expanded():
    eap = EAP(code=EAPCode.REQUEST, identifier=9)
    added = eap.add_expanded(VENDOR_ID_3GPP, VENDOR_TYPE_EAP5G, DATA)
    assert added == EXPANDED
    assert eap.type_data == [EXPANDED]
    assert eap.marshal() == EAP_EXPANDED_BYTES


def test_expanded_marshal():
    assert EXPANDED.marshal() == EXPANDED_BYTES


def test_expanded_unmarshal():
    assert EAPExpanded.unmarshal(EXPANDED_BYTES) == EXPANDED


def test_expanded_unmarshal_too_short():
    with pytest.raises(PayloadError):
        EAPExpanded.unmarshal(bytes([1, 2, 3, 4, 5, 6, 7]))


def test_expanded_vendor_id_masked():
    expanded = EAPExpanded(vendor_id=0xAB0028AF, vendor_type=3)
    assert expanded.marshal() == bytes([0xFE, 0x00, 0x28, 0xAF, 0x00, 0x00, 0x00, 0x03])


def test_identity_marshal():
    assert EAPIdentity(identity_data=DATA).marshal() == bytes([0x01]) + DATA


def test_identity_marshal_empty():
    with pytest.raises(PayloadError):
        EAPIdentity().marshal()


def test_identity_unmarshal():
    assert EAPIdentity.unmarshal(bytes([0x01]) + DATA) == EAPIdentity(identity_data=DATA)


def test_nak_marshal():
    assert EAPNak(nak_data=DATA).marshal() == bytes([0x03]) + DATA


def test_nak_marshal_empty():
    with pytest.raises(PayloadError):
        EAPNak().marshal()


def test_nak_unmarshal():
    assert EAPNak.unmarshal(bytes([0x03]) + DATA) == EAPNak(nak_data=DATA)


def test_notification_marshal():
    assert EAPNotification(notification_data=DATA).marshal() == bytes([0x02]) + DATA


def test_notification_marshal_empty():
    with pytest.raises(PayloadError):
        EAPNotification().marshal()


def test_notification_unmarshal():
    assert EAPNotification.unmarshal(bytes([0x02]) + DATA) == EAPNotification(notification_data=DATA)