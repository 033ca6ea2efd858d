"""Attribute-driven CBOR decoding and encoding, with a chunked file upload and download handler."""

__version__ = "0.1.0"
__all__ = ["cbor", "attrs", "decode", "encode", "fs_backend", "fs_mgmt"]