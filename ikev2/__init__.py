"""IKEv2 message encoding and decoding, EAP and configuration payloads, and SK payload protection."""

__version__ = "0.1.0"
__all__ = ["configuration", "crypto", "eap", "header", "message", "payloads"]