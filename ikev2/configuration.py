"""Configuration payload (RFC 7296, section 3.15)."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

from ikev2.payloads import Payload, PayloadError, PayloadType


@dataclass
class ConfigurationAttribute:
    """One TLV configuration attribute."""

    attribute_type: int = 0
    value: bytes = b""


@dataclass
class Configuration(Payload):
    payload_type: ClassVar[PayloadType] = PayloadType.CP

    configuration_type: int = 0
    attributes: list[ConfigurationAttribute] = field(default_factory=list)

    def marshal(self) -> bytes:
        out = bytearray([self.configuration_type, 0, 0, 0])
        for attribute in self.attributes:
            if len(attribute.value) > 0xFFFF:
                raise PayloadError(
                    f"Configuration: attribute value length exceeds 65535: {len(attribute.value)}")
            out += struct.pack(">HH", attribute.attribute_type & 0x7FFF, len(attribute.value))
            out += bytes(attribute.value)
        return bytes(out)

    @classmethod
    def unmarshal(cls, data: bytes) -> Configuration:
        if not data:
            return cls()
        if len(data) <= 4:
            raise PayloadError("Configuration: not enough bytes to decode configuration")
        configuration = cls(configuration_type=data[0])
        rest = bytes(data[4:])
        while rest:
            if len(rest) < 4:
                raise PayloadError("ConfigurationAttribute: not enough bytes to decode attribute")
            attribute_type, length = struct.unpack_from(">HH", rest)
            if len(rest) < 4 + length:
                raise PayloadError("ConfigurationAttribute: TLV attribute length error")
            configuration.attributes.append(
                ConfigurationAttribute(attribute_type=attribute_type, value=rest[4:4 + length]))
            rest = rest[4 + length:]
        return configuration

    def add_attribute(self, attribute_type: int, value: bytes) -> ConfigurationAttribute:
        """Append an attribute and return it."""
        attribute = ConfigurationAttribute(attribute_type=attribute_type, value=bytes(value))
        self.attributes.append(attribute)
        return attribute