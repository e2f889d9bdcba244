"""IKEv2 payload bodies and their wire encodings (RFC 7296, section 3)."""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar


class PayloadError(ValueError):
    """Raised when a payload cannot be encoded or decoded."""


class PayloadType(IntEnum):
    """IKEv2 payload type numbers."""

    NO_NEXT = 0
    SA = 33
    KE = 34
    IDI = 35
    IDR = 36
    CERT = 37
    CERTREQ = 38
    AUTH = 39
    NINR = 40
    N = 41
    D = 42
    V = 43
    TSI = 44
    TSR = 45
    SK = 46
    CP = 47
    EAP = 48


class Payload(ABC):
    """Body of an IKE payload, without the four-byte generic header."""

    payload_type: ClassVar[PayloadType]

    @abstractmethod
    def marshal(self) -> bytes:
        """Encode the payload body."""

    @classmethod
    @abstractmethod
    def unmarshal(cls, data: bytes) -> Payload:
        """Decode a payload body; empty input gives an empty payload."""


@dataclass
class Authentication(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.AUTH

    authentication_method: int = 0
    authentication_data: bytes = b""

    def marshal(self) -> bytes:
        return bytes([self.authentication_method, 0, 0, 0]) + bytes(self.authentication_data)

    @classmethod
    def unmarshal(cls, data: bytes) -> Authentication:
        if not data:
            return cls()
        if len(data) <= 4:
            raise PayloadError("Authentication: not enough bytes to decode authentication")
        return cls(authentication_method=data[0], authentication_data=bytes(data[4:]))


@dataclass
class Certificate(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.CERT

    certificate_encoding: int = 0
    certificate_data: bytes = b""

    def marshal(self) -> bytes:
        return bytes([self.certificate_encoding]) + bytes(self.certificate_data)

    @classmethod
    def unmarshal(cls, data: bytes) -> Certificate:
        if not data:
            return cls()
        if len(data) <= 1:
            raise PayloadError("Certificate: not enough bytes to decode certificate")
        return cls(certificate_encoding=data[0], certificate_data=bytes(data[1:]))


@dataclass
class CertificateRequest(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.CERTREQ

    certificate_encoding: int = 0
    certification_authority: bytes = b""

    def marshal(self) -> bytes:
        return bytes([self.certificate_encoding]) + bytes(self.certification_authority)

    @classmethod
    def unmarshal(cls, data: bytes) -> CertificateRequest:
        if not data:
            return cls()
        if len(data) <= 1:
            raise PayloadError("CertificateRequest: not enough bytes to decode certificate request")
        return cls(certificate_encoding=data[0], certification_authority=bytes(data[1:]))


@dataclass
class Delete(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.D

    protocol_id: int = 0
    spi_size: int = 0
    number_of_spi: int = 0
    spis: list[int] = field(default_factory=list)

    def marshal(self) -> bytes:
        if len(self.spis) != self.number_of_spi:
            raise PayloadError("Delete: number of SPI not correct")
        out = bytearray(struct.pack(">BBH", self.protocol_id, self.spi_size, self.number_of_spi))
        if self.number_of_spi > 0:
            if self.spi_size < 4:
                raise PayloadError(f"Delete: SPI size {self.spi_size} too small for a 32-bit SPI")
            padding = bytes(self.spi_size - 4)
            for spi in self.spis:
                out += struct.pack(">I", spi) + padding
        return bytes(out)

    @classmethod
    def unmarshal(cls, data: bytes) -> Delete:
        if not data:
            return cls()
        if len(data) <= 3:
            raise PayloadError("Delete: not enough bytes to decode delete")
        protocol_id, spi_size, number_of_spi = struct.unpack_from(">BBH", data)
        if len(data) < 4 + spi_size * number_of_spi:
            raise PayloadError("Delete: not enough bytes for the SPIs announced in the header")
        body = bytes(data[4:])
        if len(body) % 4:
            raise PayloadError("Delete: SPI data is not a whole number of 32-bit values")
        spis = [spi for (spi,) in struct.iter_unpack(">I", body)]
        return cls(protocol_id=protocol_id, spi_size=spi_size,
                   number_of_spi=number_of_spi, spis=spis)


@dataclass
class Encrypted(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.SK

    next_payload: int = 0
    encrypted_data: bytes = b""

    def marshal(self) -> bytes:
        if not self.encrypted_data:
            raise PayloadError("Encrypted: the encrypted data is empty")
        return bytes(self.encrypted_data)

    @classmethod
    def unmarshal(cls, data: bytes) -> Encrypted:
        return cls(encrypted_data=bytes(data))


@dataclass
class _Identification(Payload):
    id_type: int = 0
    id_data: bytes = b""

    def marshal(self) -> bytes:
        return bytes([self.id_type, 0, 0, 0]) + bytes(self.id_data)

    @classmethod
    def unmarshal(cls, data: bytes):
        if not data:
            return cls()
        if len(data) <= 4:
            raise PayloadError("Identification: not enough bytes to decode identification")
        return cls(id_type=data[0], id_data=bytes(data[4:]))


@dataclass
class IdentificationInitiator(_Identification):
    payload_type: ClassVar[PayloadType] = PayloadType.IDI

    def marshal(self) -> bytes:
        return super().marshal()

    @classmethod
    def unmarshal(cls, data: bytes) -> IdentificationInitiator:
        return super().unmarshal(data)


@dataclass
class IdentificationResponder(_Identification):
    payload_type: ClassVar[PayloadType] = PayloadType.IDR

    def marshal(self) -> bytes:
        return super().marshal()

    @classmethod
    def unmarshal(cls, data: bytes) -> IdentificationResponder:
        return super().unmarshal(data)


@dataclass
class KeyExchange(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.KE

    diffie_hellman_group: int = 0
    key_exchange_data: bytes = b""

    def marshal(self) -> bytes:
        return struct.pack(">HH", self.diffie_hellman_group, 0) + bytes(self.key_exchange_data)

    @classmethod
    def unmarshal(cls, data: bytes) -> KeyExchange:
        if not data:
            return cls()
        if len(data) <= 4:
            raise PayloadError("KeyExchange: not enough bytes to decode key exchange data")
        (group,) = struct.unpack_from(">H", data)
        return cls(diffie_hellman_group=group, key_exchange_data=bytes(data[4:]))


@dataclass
class Nonce(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.NINR

    nonce_data: bytes = b""

    def marshal(self) -> bytes:
        return bytes(self.nonce_data)

    @classmethod
    def unmarshal(cls, data: bytes) -> Nonce:
        return cls(nonce_data=bytes(data))


@dataclass
class Notification(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.N

    protocol_id: int = 0
    notify_message_type: int = 0
    spi: bytes = b""
    notification_data: bytes = b""

    def marshal(self) -> bytes:
        if len(self.spi) > 0xFF:
            raise PayloadError(f"Notification: SPI size exceeds 255 bytes: {len(self.spi)}")
        header = struct.pack(">BBH", self.protocol_id, len(self.spi), self.notify_message_type)
        return header + bytes(self.spi) + bytes(self.notification_data)

    @classmethod
    def unmarshal(cls, data: bytes) -> Notification:
        if not data:
            return cls()
        if len(data) < 4:
            raise PayloadError("Notification: not enough bytes to decode notification")
        protocol_id, spi_size, message_type = struct.unpack_from(">BBH", data)
        if len(data) < 4 + spi_size:
            raise PayloadError("Notification: not enough bytes for the SPI announced in the header")
        return cls(
            protocol_id=protocol_id,
            notify_message_type=message_type,
            spi=bytes(data[4:4 + spi_size]),
            notification_data=bytes(data[4 + spi_size:]),
        )