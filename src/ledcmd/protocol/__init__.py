"""Protocol layer: binary framing, ring buffer transport, keyed documents."""

from .framing import decode, decode_owned, encode, encode_into, size_in_bytes
from .keyed import KeyedCodec
