"""Protection of IKE messages with the keys of an IKE SA (RFC 7296, section 3.14)."""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from ikev2.header import IKE_HEADER_LEN, IKEHeader
from ikev2.message import IKEMessage, PayloadContainer
from ikev2.payloads import Encrypted, PayloadError, PayloadType


class Role(Enum):
    """Side of the IKE SA that sends a message."""

    INITIATOR = "initiator"
    RESPONDER = "responder"


def _peer(role: Role) -> Role:
    return Role.RESPONDER if role is Role.INITIATOR else Role.INITIATOR


class _Cipher(Protocol):
    def encrypt(self, plaintext: bytes) -> bytes: ...

    def decrypt(self, ciphertext: bytes) -> bytes: ...


class _Mac(Protocol):
    def copy(self) -> _Mac: ...

    def update(self, data: bytes) -> None: ...

    def digest(self) -> bytes: ...


class _IntegrityInfo(Protocol):
    output_length: int


@dataclass
class SAKey:
    """Keys of an IKE SA.

    ``encr_i``/``encr_r`` encrypt and decrypt whole SK payload bodies (IV and
    padding included). ``integ_i``/``integ_r`` are keyed MAC objects in their
    initial state, such as ``hmac.new(key, digestmod="sha1")``; they are copied
    before each use. ``integ_info.output_length`` is the checksum size.
    """

    encr_info: Any = None
    integ_info: _IntegrityInfo | None = None
    encr_i: _Cipher | None = None
    encr_r: _Cipher | None = None
    integ_i: _Mac | None = None
    integ_r: _Mac | None = None


def encode_encrypt(message: IKEMessage, sa_key: SAKey | None, role: Role) -> bytes:
    """Encode a message, first encrypting its payloads when a key is given."""
    if sa_key is not None:
        try:
            encrypt_message(message, sa_key, role)
        except PayloadError as err:
            raise PayloadError(f"IKE encode encrypt: {err}") from err
    try:
        return message.encode()
    except PayloadError as err:
        raise PayloadError(f"IKE encode: {err}") from err


def decode_decrypt(data: bytes, header: IKEHeader | None, sa_key: SAKey | None,
                   role: Role) -> IKEMessage:
    """Decode a message and decrypt its SK payload if it carries one.

    When ``header`` is given it is used as the already parsed header of ``data``.
    """
    try:
        if header is None:
            message = IKEMessage.decode(data)
        else:
            message = IKEMessage(header=header)
            message.decode_payload(bytes(data[IKE_HEADER_LEN:]))
    except PayloadError as err:
        raise PayloadError(f"decode decrypt: {err}") from err

    if message.payloads and isinstance(message.payloads[0], Encrypted):
        if sa_key is None:
            raise PayloadError("IKE decode decrypt: need an SA key to decrypt")
        try:
            message = decrypt_message(data, message, sa_key, role)
        except PayloadError as err:
            raise PayloadError(f"IKE decode decrypt: {err}") from err
    return message


def verify_integrity(origin_data: bytes, checksum: bytes, sa_key: SAKey, role: Role) -> None:
    """Raise PayloadError unless ``checksum`` is the MAC of ``origin_data`` sent by ``role``."""
    try:
        expected = calculate_integrity(sa_key, role, origin_data)
    except PayloadError as err:
        raise PayloadError(f"verify integrity: {err}") from err
    if not hmac.compare_digest(bytes(checksum), expected):
        raise PayloadError("invalid checksum")


def calculate_integrity(sa_key: SAKey, role: Role, origin_data: bytes) -> bytes:
    """MAC of ``origin_data`` with the integrity key of ``role``, truncated to the output length."""
    if sa_key.integ_info is None:
        raise PayloadError("calculate integrity: no integrity algorithm specified")
    output_length = sa_key.integ_info.output_length
    if role is Role.INITIATOR:
        template = sa_key.integ_i
        if template is None:
            raise PayloadError("calculate integrity: IKE SA has no initiator integrity key")
    else:
        template = sa_key.integ_r
        if template is None:
            raise PayloadError("calculate integrity: IKE SA has no responder integrity key")
    mac = template.copy()
    mac.update(bytes(origin_data))
    return mac.digest()[:output_length]


def _encrypt_payload(plaintext: bytes, sa_key: SAKey, role: Role) -> bytes:
    cipher = sa_key.encr_i if role is Role.INITIATOR else sa_key.encr_r
    if cipher is None:
        raise PayloadError(f"encrypt payload: no {role.value} encryption key")
    try:
        return bytes(cipher.encrypt(plaintext))
    except ValueError as err:
        raise PayloadError(f"encrypt payload: {err}") from err


def _decrypt_payload(ciphertext: bytes, sa_key: SAKey, role: Role) -> bytes:
    cipher = sa_key.encr_r if role is Role.INITIATOR else sa_key.encr_i
    if cipher is None:
        raise PayloadError(f"decrypt payload: no {_peer(role).value} encryption key")
    try:
        return bytes(cipher.decrypt(ciphertext))
    except ValueError as err:
        raise PayloadError(f"decrypt payload: {err}") from err


def decrypt_message(data: bytes, message: IKEMessage, sa_key: SAKey,
                    role: Role) -> IKEMessage:
    """Check and decrypt the SK payload of ``message``, whose wire form is ``data``.

    The message's payloads are replaced by the decrypted ones.
    """
    if sa_key is None:
        raise PayloadError("decrypt message: IKE SA is missing")
    if data is None:
        raise PayloadError("decrypt message: message data is missing")
    if message is None:
        raise PayloadError("decrypt message: IKE message is missing")
    if sa_key.integ_info is None:
        raise PayloadError("decrypt message: no integrity algorithm specified")
    if sa_key.encr_info is None:
        raise PayloadError("decrypt message: no encryption algorithm specified")
    if sa_key.integ_i is None:
        raise PayloadError("decrypt message: no initiator's integrity key")
    if sa_key.encr_i is None:
        raise PayloadError("decrypt message: no initiator's encryption key")

    encrypted: Encrypted | None = None
    for payload in message.payloads:
        if not isinstance(payload, Encrypted):
            raise PayloadError(
                f"got IKE payload of type {int(payload.payload_type)} outside the SK payload")
        encrypted = payload
    if encrypted is None:
        raise PayloadError("decrypt message: no encrypted payload")

    checksum_length = sa_key.integ_info.output_length
    sealed = bytes(encrypted.encrypted_data)
    if len(sealed) < checksum_length or len(data) < checksum_length:
        raise PayloadError("decrypt message: encrypted payload shorter than its checksum")
    body_end = len(sealed) - checksum_length
    checksum = sealed[body_end:]

    try:
        verify_integrity(bytes(data[:len(data) - checksum_length]), checksum, sa_key,
                         _peer(role))
    except PayloadError as err:
        raise PayloadError(f"decrypt message: {err}") from err

    plaintext = _decrypt_payload(sealed[:body_end], sa_key, role)
    try:
        decrypted = PayloadContainer.decode(encrypted.next_payload, plaintext)
    except PayloadError as err:
        raise PayloadError(f"decrypt message: decoding decrypted payload failed: {err}") from err

    message.payloads = decrypted
    return message


def encrypt_message(message: IKEMessage, sa_key: SAKey, role: Role) -> None:
    """Replace the payloads of ``message`` by one SK payload holding them encrypted."""
    if message is None:
        raise PayloadError("encrypt message: IKE message is missing")
    if sa_key is None:
        raise PayloadError("encrypt message: IKE SA is missing")
    if sa_key.integ_info is None:
        raise PayloadError("encrypt message: no integrity algorithm specified")
    if sa_key.encr_info is None:
        raise PayloadError("encrypt message: no encryption algorithm specified")
    if sa_key.integ_r is None:
        raise PayloadError("encrypt message: no responder's integrity key")
    if sa_key.encr_r is None:
        raise PayloadError("encrypt message: no responder's encryption key")

    checksum_length = sa_key.integ_info.output_length
    payloads = PayloadContainer(message.payloads)
    try:
        plaintext = payloads.encode()
    except PayloadError as err:
        raise PayloadError(f"encrypt message: encoding IKE payloads failed: {err}") from err

    sealed = _encrypt_payload(plaintext, sa_key, role) + bytes(checksum_length)
    first_type = int(payloads[0].payload_type) if payloads else int(PayloadType.NO_NEXT)

    message.payloads = PayloadContainer()
    sk = message.payloads.build_encrypted(first_type, sealed)

    try:
        wire = message.encode()
    except PayloadError as err:
        raise PayloadError(f"encrypt message: encoding IKE message failed: {err}") from err
    checksum = calculate_integrity(sa_key, role, wire[:len(wire) - checksum_length])
    body_end = len(sk.encrypted_data) - checksum_length
    sk.encrypted_data = sk.encrypted_data[:body_end] + checksum