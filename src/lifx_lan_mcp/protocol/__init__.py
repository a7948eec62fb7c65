"""Protocol layer: frame codec, message types, payload builders and decoders."""

from .framing import Frame, decode_frame, encode_frame
from .messages import MessageType
from .parser import HSBK, decode_payload, parse_payload
