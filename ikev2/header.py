"""IKEv2 message header (RFC 7296, section 3.1)."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from ikev2.payloads import PayloadError

RESPONSE_BIT = 0x20
VERSION_BIT = 0x10
INITIATOR_BIT = 0x08

IKE_HEADER_LEN = 28

IKE_SA_INIT = 34
IKE_AUTH = 35
CREATE_CHILD_SA = 36
INFORMATIONAL = 37

_HEADER = struct.Struct(">QQBBBBII")


@dataclass
class IKEHeader:
    """Fixed IKE header plus the raw bytes of the payloads that follow it."""

    initiator_spi: int = 0
    responder_spi: int = 0
    major_version: int = 2
    minor_version: int = 0
    exchange_type: int = 0
    flags: int = 0
    message_id: int = 0
    next_payload: int = 0
    payload_bytes: bytes = b""

    @classmethod
    def build(cls, initiator_spi, responder_spi, exchange_type, response, initiator,
              message_id, next_payload, payload_bytes) -> IKEHeader:
        """Create a version 2.0 header with the response and initiator flags set as asked."""
        flags = (RESPONSE_BIT if response else 0) | (INITIATOR_BIT if initiator else 0)
        return cls(
            initiator_spi=initiator_spi,
            responder_spi=responder_spi,
            major_version=2,
            minor_version=0,
            exchange_type=exchange_type,
            flags=flags,
            message_id=message_id,
            next_payload=next_payload,
            payload_bytes=bytes(payload_bytes or b""),
        )

    def marshal(self) -> bytes:
        """Encode the header followed by the payload bytes."""
        total = IKE_HEADER_LEN + len(self.payload_bytes)
        if total > 0xFFFFFFFF:
            raise PayloadError(f"IKE message length exceeds 32 bits: {total}")
        version = ((self.major_version << 4) | (self.minor_version & 0x0F)) & 0xFF
        header = _HEADER.pack(
            self.initiator_spi, self.responder_spi, self.next_payload, version,
            self.exchange_type, self.flags, self.message_id, total,
        )
        return header + bytes(self.payload_bytes)

    def is_response(self) -> bool:
        return bool(self.flags & RESPONSE_BIT)

    def is_initiator(self) -> bool:
        return bool(self.flags & INITIATOR_BIT)


def parse_header(data: bytes) -> IKEHeader:
    """Decode an IKE header; everything after it becomes ``payload_bytes``."""
    if len(data) < IKE_HEADER_LEN:
        raise PayloadError("received broken IKE header")
    (initiator_spi, responder_spi, next_payload, version, exchange_type,
     flags, message_id, total) = _HEADER.unpack_from(data)
    if total < IKE_HEADER_LEN:
        raise PayloadError(
            f"illegal IKE message length {total} < header length {IKE_HEADER_LEN}")
    return IKEHeader(
        initiator_spi=initiator_spi,
        responder_spi=responder_spi,
        major_version=version >> 4,
        minor_version=version & 0x0F,
        exchange_type=exchange_type,
        flags=flags,
        message_id=message_id,
        next_payload=next_payload,
        payload_bytes=bytes(data[IKE_HEADER_LEN:]),
    )