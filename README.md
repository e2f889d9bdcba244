# ikev2

Encode and decode IKEv2 messages (RFC 7296), including the 3GPP
additions used for 5G untrusted non-3GPP access (EAP-5G and the 3GPP
notify payloads), and wrap or unwrap a message's payloads in the
Encrypted (SK) payload. The package has no dependencies outside the
standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `ikev2.header`: `IKEHeader` (with `build`, `marshal`, `is_response`,
  `is_initiator`) and `parse_header(data)` for the fixed 28-byte header.
  Also the flag bits `RESPONSE_BIT`, `VERSION_BIT`, `INITIATOR_BIT`, the
  length `IKE_HEADER_LEN` and the exchange types `IKE_SA_INIT`,
  `IKE_AUTH`, `CREATE_CHILD_SA` and `INFORMATIONAL`.
- `ikev2.payloads`: the `Payload` base class, the `PayloadType`
  enumeration, the `PayloadError` exception and the payloads
  `Authentication`, `Certificate`, `CertificateRequest`, `Delete`,
  `Encrypted`, `IdentificationInitiator`, `IdentificationResponder`,
  `KeyExchange`, `Nonce` and `Notification`.
- `ikev2.eap`: the `EAP` payload, the `EAPCode` and `EAPType`
  enumerations, and the type data classes `EAPIdentity`,
  `EAPNotification`, `EAPNak` and `EAPExpanded`. `EAP.add_expanded`
  appends expanded-type data.
- `ikev2.configuration`: the `Configuration` payload with its list of
  `ConfigurationAttribute` entries; `Configuration.add_attribute`
  appends one.
- `ikev2.message`: `PayloadContainer`, a `list` of payloads with
  `encode()`, `decode(next_payload, data)` and `build_*` helpers, and
  `IKEMessage` (a header plus a `PayloadContainer`) with `create`,
  `encode`, `decode` and `decode_payload`.
- `ikev2.crypto`: `Role`, `SAKey`, `encode_encrypt`, `decode_decrypt`,
  `encrypt_message`, `decrypt_message`, `calculate_integrity` and
  `verify_integrity`.

Every payload class is a dataclass with `marshal()`, which returns the
payload body (without the 4-byte generic header) as `bytes`, and a class
method `unmarshal(data)`, which builds an instance from a body. Malformed
input, and values that do not fit their fields, raise `PayloadError`
(a subclass of `ValueError`).

## Building and decoding a message

```python
from ikev2.header import IKE_SA_INIT
from ikev2.message import IKEMessage, PayloadContainer

payloads = PayloadContainer()
payloads.build_nonce(bytes(range(16)))
payloads.build_notify_nas_tcp_port(20000)

msg = IKEMessage.create(
    initiator_spi=0x1122334455667788,
    responder_spi=0,
    exchange_type=IKE_SA_INIT,
    response=False,
    initiator=True,
    message_id=0,
    payloads=payloads,
)
wire = msg.encode()

decoded = IKEMessage.decode(wire)
assert decoded.payloads == payloads
```

`IKEMessage.encode()` sets the header's next-payload type and payload
bytes from the payload list before encoding. When decoding, a payload of
an unknown type is skipped unless its critical bit is set, in which case
`PayloadError` is raised.

The builders on `PayloadContainer` append a payload and return it:
`build_notification`, `build_certificate`, `build_encrypted`,
`build_key_exchange`, `build_identification_initiator`,
`build_identification_responder`, `build_authentication`,
`build_configuration`, `build_nonce`, `build_delete`, `build_eap`,
`build_eap_success`, `build_eap_failure`, `build_eap_5g_start`,
`build_eap_5g_nas`, `build_notify_5g_qos_info`,
`build_notify_nas_ip4_address`, `build_notify_up_ip4_address` and
`build_notify_nas_tcp_port`. The last three add nothing and return
`None` when given an empty address or port 0.

## Protecting a message

`encode_encrypt(message, sa_key, role)` moves the message's payloads into
one SK payload, encrypted with the sender's key and followed by the
integrity checksum, and returns the wire bytes. With `sa_key=None` it only
encodes. `decode_decrypt(data, header, sa_key, role)` decodes a message
(using `header` if it has already been parsed), checks the checksum with
the peer's integrity key and replaces the SK payload by the decrypted
payloads. A wrong checksum raises `PayloadError`.

```python
import hmac
from types import SimpleNamespace

from ikev2.crypto import Role, SAKey, decode_decrypt, encode_encrypt

sa_key = SAKey(
    encr_info="ENCR_AES_CBC_256",
    integ_info=SimpleNamespace(output_length=12),
    encr_i=initiator_cipher,
    encr_r=responder_cipher,
    integ_i=hmac.new(b"secret", digestmod="sha1"),
    integ_r=hmac.new(b"secret", digestmod="sha1"),
)

wire = encode_encrypt(msg, sa_key, Role.INITIATOR)
plain = decode_decrypt(wire, None, sa_key, Role.RESPONDER)
```

`integ_i` and `integ_r` are keyed MAC objects in their initial state;
they are copied before each use. `integ_info.output_length` is the
checksum length. `encr_i` and `encr_r` are objects with `encrypt(bytes)`
and `decrypt(bytes)` that handle the whole SK body, IV and padding
included. `encr_info` only has to be set.

## What the package does not do

- It contains no cipher implementations and no table of IKE transforms:
  the encryption objects and the MAC objects in `SAKey` must be supplied
  by the caller.
- It does not derive keys, negotiate an IKE SA or send and receive
  packets; it only encodes, decodes and protects messages.
- Security Association, Vendor ID and Traffic Selector payloads are not
  decoded into fields. Their bodies are kept as raw bytes, so a decoded
  message encodes back unchanged, but there are no classes for building
  them.