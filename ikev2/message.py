"""IKEv2 messages: the payload chain, its builders, and whole-message encoding."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field
from typing import ClassVar, Iterable

from ikev2.configuration import Configuration
from ikev2.eap import (
    EAP,
    EAP5G_SPARE_VALUE,
    EAP5G_TYPE_5G_NAS,
    EAP5G_TYPE_5G_START,
    VENDOR_ID_3GPP,
    VENDOR_TYPE_EAP5G,
    EAPCode,
)
from ikev2.header import IKEHeader, parse_header
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
    Payload,
    PayloadError,
    PayloadType,
)

PROTOCOL_NONE = 0

NOTIFY_5G_QOS_INFO = 55501
NOTIFY_NAS_IP4_ADDRESS = 55502
NOTIFY_UP_IP4_ADDRESS = 55504
NOTIFY_NAS_TCP_PORT = 55506

QOS_INFO_DSCP_PRESENT = 0x01
QOS_INFO_DEFAULT = 0x02

_GENERIC_HEADER = struct.Struct(">BBH")


@dataclass
class _RawPayload(Payload):
    """Payload kept as its undecoded body so that it encodes back unchanged."""

    body: bytes = b""

    def marshal(self) -> bytes:
        return bytes(self.body)

    @classmethod
    def unmarshal(cls, data: bytes) -> _RawPayload:
        return cls(body=bytes(data))


@dataclass
class _RawSecurityAssociation(_RawPayload):
    payload_type: ClassVar[PayloadType] = PayloadType.SA


@dataclass
class _RawVendorID(_RawPayload):
    payload_type: ClassVar[PayloadType] = PayloadType.V


@dataclass
class _RawTrafficSelectorInitiator(_RawPayload):
    payload_type: ClassVar[PayloadType] = PayloadType.TSI


@dataclass
class _RawTrafficSelectorResponder(_RawPayload):
    payload_type: ClassVar[PayloadType] = PayloadType.TSR


_PAYLOAD_CLASSES: dict[int, type[Payload]] = {
    PayloadType.SA: _RawSecurityAssociation,
    PayloadType.KE: KeyExchange,
    PayloadType.IDI: IdentificationInitiator,
    PayloadType.IDR: IdentificationResponder,
    PayloadType.CERT: Certificate,
    PayloadType.CERTREQ: CertificateRequest,
    PayloadType.AUTH: Authentication,
    PayloadType.NINR: Nonce,
    PayloadType.N: Notification,
    PayloadType.D: Delete,
    PayloadType.V: _RawVendorID,
    PayloadType.TSI: _RawTrafficSelectorInitiator,
    PayloadType.TSR: _RawTrafficSelectorResponder,
    PayloadType.SK: Encrypted,
    PayloadType.CP: Configuration,
    PayloadType.EAP: EAP,
}


def _ipv4_bytes(text: str) -> bytes:
    """Four-byte form of an IPv4 address, or empty if there is none."""
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        return b""
    if isinstance(address, ipaddress.IPv6Address):
        mapped = address.ipv4_mapped
        return mapped.packed if mapped is not None else b""
    return address.packed


class PayloadContainer(list):
    """Ordered chain of IKE payloads."""

    def encode(self) -> bytes:
        """Encode every payload with its generic header, chained by next-payload type."""
        out = bytearray()
        for payload, following in zip(self, [*self[1:], None]):
            if following is not None:
                next_type = int(following.payload_type)
            elif isinstance(payload, Encrypted):
                next_type = payload.next_payload
            else:
                next_type = int(PayloadType.NO_NEXT)
            try:
                body = payload.marshal()
            except PayloadError as err:
                raise PayloadError(f"failed to marshal payload: {err}") from err
            length = _GENERIC_HEADER.size + len(body)
            if length > 0xFFFF:
                raise PayloadError(f"payload length exceeds 65535: {length}")
            out += _GENERIC_HEADER.pack(next_type, 0, length) + body
        return bytes(out)

    @classmethod
    def decode(cls, next_payload: int, data: bytes) -> PayloadContainer:
        """Decode a payload chain whose first payload has type ``next_payload``."""
        container = cls()
        rest = bytes(data)
        while rest:
            if len(rest) < _GENERIC_HEADER.size:
                raise PayloadError("not enough bytes to decode next payload")
            following, critical, length = _GENERIC_HEADER.unpack_from(rest)
            if length < _GENERIC_HEADER.size:
                raise PayloadError(f"illegal payload length {length} < header length 4")
            if len(rest) < length:
                raise PayloadError(
                    f"message length {len(rest)} does not match the length in header")
            payload_class = _PAYLOAD_CLASSES.get(next_payload)
            if payload_class is None:
                if critical & 0x80:
                    raise PayloadError(f"unknown payload type: {next_payload}")
            else:
                try:
                    payload = payload_class.unmarshal(rest[_GENERIC_HEADER.size:length])
                except PayloadError as err:
                    raise PayloadError(f"unmarshal payload failed: {err}") from err
                if isinstance(payload, Encrypted):
                    payload.next_payload = following
                container.append(payload)
            next_payload = following
            rest = rest[length:]
        return container

    def build_notification(self, protocol_id, notify_message_type, spi,
                           notification_data) -> Notification:
        notification = Notification(
            protocol_id=protocol_id,
            notify_message_type=notify_message_type,
            spi=bytes(spi or b""),
            notification_data=bytes(notification_data or b""),
        )
        self.append(notification)
        return notification

    def build_certificate(self, certificate_encoding, certificate_data) -> Certificate:
        certificate = Certificate(certificate_encoding=certificate_encoding,
                                  certificate_data=bytes(certificate_data or b""))
        self.append(certificate)
        return certificate

    def build_encrypted(self, next_payload, encrypted_data) -> Encrypted:
        encrypted = Encrypted(next_payload=int(next_payload),
                              encrypted_data=bytes(encrypted_data or b""))
        self.append(encrypted)
        return encrypted

    def build_key_exchange(self, diffie_hellman_group, key_exchange_data) -> KeyExchange:
        key_exchange = KeyExchange(diffie_hellman_group=diffie_hellman_group,
                                   key_exchange_data=bytes(key_exchange_data or b""))
        self.append(key_exchange)
        return key_exchange

    def build_identification_initiator(self, id_type, id_data) -> IdentificationInitiator:
        identification = IdentificationInitiator(id_type=id_type, id_data=bytes(id_data or b""))
        self.append(identification)
        return identification

    def build_identification_responder(self, id_type, id_data) -> IdentificationResponder:
        identification = IdentificationResponder(id_type=id_type, id_data=bytes(id_data or b""))
        self.append(identification)
        return identification

    def build_authentication(self, authentication_method, authentication_data) -> Authentication:
        authentication = Authentication(authentication_method=authentication_method,
                                        authentication_data=bytes(authentication_data or b""))
        self.append(authentication)
        return authentication

    def build_configuration(self, configuration_type) -> Configuration:
        configuration = Configuration(configuration_type=configuration_type)
        self.append(configuration)
        return configuration

    def build_nonce(self, nonce_data) -> Nonce:
        nonce = Nonce(nonce_data=bytes(nonce_data or b""))
        self.append(nonce)
        return nonce

    def build_delete(self, protocol_id, spi_size, number_of_spi, spis) -> Delete:
        delete = Delete(protocol_id=protocol_id, spi_size=spi_size,
                        number_of_spi=number_of_spi, spis=list(spis or []))
        self.append(delete)
        return delete

    def build_eap(self, code, identifier) -> EAP:
        eap = EAP(code=code, identifier=identifier)
        self.append(eap)
        return eap

    def build_eap_success(self, identifier) -> EAP:
        return self.build_eap(EAPCode.SUCCESS, identifier)

    def build_eap_failure(self, identifier) -> EAP:
        return self.build_eap(EAPCode.FAILURE, identifier)

    def build_eap_5g_start(self, identifier) -> EAP:
        eap = self.build_eap(EAPCode.REQUEST, identifier)
        eap.add_expanded(VENDOR_ID_3GPP, VENDOR_TYPE_EAP5G,
                         bytes([EAP5G_TYPE_5G_START, EAP5G_SPARE_VALUE]))
        return eap

    def build_eap_5g_nas(self, identifier, nas_pdu) -> EAP:
        if not nas_pdu:
            raise PayloadError("NAS PDU is empty")
        if len(nas_pdu) > 0xFFFF:
            raise PayloadError(f"NAS PDU length exceeds 65535: {len(nas_pdu)}")
        vendor_data = struct.pack(">BBH", EAP5G_TYPE_5G_NAS, 0, len(nas_pdu)) + bytes(nas_pdu)
        eap = self.build_eap(EAPCode.REQUEST, identifier)
        eap.add_expanded(VENDOR_ID_3GPP, VENDOR_TYPE_EAP5G, vendor_data)
        return eap

    def build_notify_5g_qos_info(self, pdu_session_id, qfi_list, is_default,
                                 is_dscp_specified, dscp) -> Notification:
        qfis = bytes(qfi_list or b"")
        if len(qfis) > 0xFF:
            raise PayloadError("QFI list is too long")
        flags = (QOS_INFO_DEFAULT if is_default else 0) | (
            QOS_INFO_DSCP_PRESENT if is_dscp_specified else 0)
        body = bytes([pdu_session_id, len(qfis)]) + qfis + bytes([flags])
        if is_dscp_specified:
            body += bytes([dscp])
        length = len(body) + 1
        if length > 0xFF:
            raise PayloadError("5G QoS info notification data is too long")
        return self.build_notification(PROTOCOL_NONE, NOTIFY_5G_QOS_INFO, b"",
                                       bytes([length]) + body)

    def build_notify_nas_ip4_address(self, nas_ip_addr) -> Notification | None:
        if not nas_ip_addr:
            return None
        return self.build_notification(PROTOCOL_NONE, NOTIFY_NAS_IP4_ADDRESS, b"",
                                       _ipv4_bytes(nas_ip_addr))

    def build_notify_up_ip4_address(self, up_ip_addr) -> Notification | None:
        if not up_ip_addr:
            return None
        return self.build_notification(PROTOCOL_NONE, NOTIFY_UP_IP4_ADDRESS, b"",
                                       _ipv4_bytes(up_ip_addr))

    def build_notify_nas_tcp_port(self, port) -> Notification | None:
        if port == 0:
            return None
        return self.build_notification(PROTOCOL_NONE, NOTIFY_NAS_TCP_PORT, b"",
                                       struct.pack(">H", port))


@dataclass
class IKEMessage:
    """An IKE header together with its payload chain."""

    header: IKEHeader = field(default_factory=IKEHeader)
    payloads: PayloadContainer = field(default_factory=PayloadContainer)

    @classmethod
    def create(cls, initiator_spi, responder_spi, exchange_type, response, initiator,
               message_id, payloads: Iterable[Payload] | None = None) -> IKEMessage:
        header = IKEHeader.build(initiator_spi, responder_spi, exchange_type, response,
                                 initiator, message_id, int(PayloadType.NO_NEXT), b"")
        return cls(header=header, payloads=PayloadContainer(payloads or []))

    def encode(self) -> bytes:
        """Encode the message; the header's next payload and payload bytes are refreshed."""
        if not isinstance(self.payloads, PayloadContainer):
            self.payloads = PayloadContainer(self.payloads)
        self.header.next_payload = (
            int(self.payloads[0].payload_type) if self.payloads else int(PayloadType.NO_NEXT))
        try:
            self.header.payload_bytes = self.payloads.encode()
        except PayloadError as err:
            raise PayloadError(f"encoding payloads failed: {err}") from err
        return self.header.marshal()

    @classmethod
    def decode(cls, data: bytes) -> IKEMessage:
        message = cls(header=parse_header(data))
        message.decode_payload(message.header.payload_bytes)
        return message

    def decode_payload(self, data: bytes) -> None:
        """Decode payloads following the header and append them to this message."""
        try:
            decoded = PayloadContainer.decode(self.header.next_payload, data)
        except PayloadError as err:
            raise PayloadError(f"decoding payloads failed: {err}") from err
        if not isinstance(self.payloads, PayloadContainer):
            self.payloads = PayloadContainer(self.payloads)
        self.payloads.extend(decoded)