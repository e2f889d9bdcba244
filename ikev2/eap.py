"""EAP payload carried inside IKEv2 (RFC 7296, section 3.16) and its type data."""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar

from ikev2.payloads import Payload, PayloadError, PayloadType

VENDOR_ID_3GPP = 0x28AF
VENDOR_TYPE_EAP5G = 3

EAP5G_TYPE_5G_START = 1
EAP5G_TYPE_5G_NAS = 2
EAP5G_TYPE_5G_NOTIFICATION = 3
EAP5G_TYPE_5G_STOP = 4
EAP5G_SPARE_VALUE = 0


class EAPCode(IntEnum):
    """EAP packet codes."""

    REQUEST = 1
    RESPONSE = 2
    SUCCESS = 3
    FAILURE = 4


class EAPType(IntEnum):
    """EAP method types understood by this package."""

    IDENTITY = 1
    NOTIFICATION = 2
    NAK = 3
    EXPANDED = 254


class EAPTypeData(ABC):
    """Type-specific part of an EAP packet, starting with the type octet."""

    eap_type: ClassVar[EAPType]

    @abstractmethod
    def marshal(self) -> bytes:
        """Encode the type octet and the type data."""

    @classmethod
    @abstractmethod
    def unmarshal(cls, data: bytes) -> EAPTypeData:
        """Decode type data, the type octet included."""


def _tagged(eap_type: EAPType, body: bytes, what: str) -> bytes:
    if not body:
        raise PayloadError(f"{what}: EAP {what[3:].lower()} is empty")
    return bytes([eap_type]) + bytes(body)


@dataclass
class EAPIdentity(EAPTypeData):
    eap_type: ClassVar[EAPType] = EAPType.IDENTITY

    identity_data: bytes = b""

    def marshal(self) -> bytes:
        return _tagged(self.eap_type, self.identity_data, "EAPIdentity")

    @classmethod
    def unmarshal(cls, data: bytes) -> EAPIdentity:
        return cls(identity_data=bytes(data[1:]))


@dataclass
class EAPNotification(EAPTypeData):
    eap_type: ClassVar[EAPType] = EAPType.NOTIFICATION

    notification_data: bytes = b""

    def marshal(self) -> bytes:
        return _tagged(self.eap_type, self.notification_data, "EAPNotification")

    @classmethod
    def unmarshal(cls, data: bytes) -> EAPNotification:
        return cls(notification_data=bytes(data[1:]))


@dataclass
class EAPNak(EAPTypeData):
    eap_type: ClassVar[EAPType] = EAPType.NAK

    nak_data: bytes = b""

    def marshal(self) -> bytes:
        return _tagged(self.eap_type, self.nak_data, "EAPNak")

    @classmethod
    def unmarshal(cls, data: bytes) -> EAPNak:
        return cls(nak_data=bytes(data[1:]))


@dataclass
class EAPExpanded(EAPTypeData):
    eap_type: ClassVar[EAPType] = EAPType.EXPANDED

    vendor_id: int = 0
    vendor_type: int = 0
    vendor_data: bytes = b""

    def marshal(self) -> bytes:
        type_and_vendor = (int(EAPType.EXPANDED) << 24) | (self.vendor_id & 0x00FFFFFF)
        return struct.pack(">II", type_and_vendor, self.vendor_type) + bytes(self.vendor_data)

    @classmethod
    def unmarshal(cls, data: bytes) -> EAPExpanded:
        if not data:
            return cls()
        if len(data) < 8:
            raise PayloadError("EAPExpanded: not enough bytes to decode the EAP expanded type")
        type_and_vendor, vendor_type = struct.unpack_from(">II", data)
        return cls(
            vendor_id=type_and_vendor & 0x00FFFFFF,
            vendor_type=vendor_type,
            vendor_data=bytes(data[8:]),
        )


_TYPE_DATA_CLASSES: dict[int, type[EAPTypeData]] = {
    EAPType.IDENTITY: EAPIdentity,
    EAPType.NOTIFICATION: EAPNotification,
    EAPType.NAK: EAPNak,
    EAPType.EXPANDED: EAPExpanded,
}


@dataclass
class EAP(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.EAP

    code: int = 0
    identifier: int = 0
    type_data: list[EAPTypeData] = field(default_factory=list)

    def marshal(self) -> bytes:
        body = b""
        if self.type_data:
            try:
                body = self.type_data[0].marshal()
            except PayloadError as err:
                raise PayloadError(f"EAP: EAP type data marshal failed: {err}") from err
        length = 4 + len(body)
        if length > 0xFFFF:
            raise PayloadError(f"EAP: EAP data length exceeds 65535: {length}")
        return struct.pack(">BBH", self.code, self.identifier, length) + body

    @classmethod
    def unmarshal(cls, data: bytes) -> EAP:
        if not data:
            return cls()
        if len(data) < 4:
            raise PayloadError("EAP: not enough bytes to decode EAP payload")
        code, identifier, length = struct.unpack_from(">BBH", data)
        if length < 4:
            raise PayloadError("EAP: length in header is too small for EAP")
        if len(data) != length:
            raise PayloadError("EAP: received length does not match the length in header")
        eap = cls(code=code, identifier=identifier)
        if length == 4:
            return eap
        type_class = _TYPE_DATA_CLASSES.get(data[4])
        if type_class is None:
            raise PayloadError(f"EAP: unsupported EAP type {data[4]}")
        try:
            eap.type_data.append(type_class.unmarshal(bytes(data[4:])))
        except PayloadError as err:
            raise PayloadError(f"EAP: unmarshal EAP type data failed: {err}") from err
        return eap

    def add_expanded(self, vendor_id: int, vendor_type: int, vendor_data: bytes) -> EAPExpanded:
        """Append expanded-type data and return it."""
        expanded = EAPExpanded(vendor_id=vendor_id, vendor_type=vendor_type,
                               vendor_data=bytes(vendor_data))
        self.type_data.append(expanded)
        return expanded