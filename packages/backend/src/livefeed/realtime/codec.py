"""Event envelope codec — payload normalization and SSE framing.

Learn: Publishers are permissive. Whatever arrives at /ingest becomes an
envelope, never an error:
- a non-empty JSON object passes through unchanged (StructuredEnvelope)
- anything else is wrapped as {"text": "<raw input>"} (FallbackEnvelope)

normalize() is the only place that decides which variant a payload is.

Wire framing follows the text/event-stream format. Each unit ends with a
blank line:

    data: {"text":"hello"}          <- default "message" event

    event: ping                     <- heartbeat
    data: 1700000000000

"""

import json
from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import parse_qsl

PING_EVENT = "ping"
MESSAGE_EVENT = "message"


@dataclass(frozen=True)
class StructuredEnvelope:
    """A key/value payload delivered as-is."""

    data: dict[str, Any]

    def as_dict(self) -> dict[str, Any]:
        return self.data


@dataclass(frozen=True)
class FallbackEnvelope:
    """Raw input that was not a structured object."""

    text: str

    def as_dict(self) -> dict[str, Any]:
        return {"text": self.text}


Envelope = Union[StructuredEnvelope, FallbackEnvelope]


def _as_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    if isinstance(raw, dict):
        # Only reachable for an empty object
        return ""
    try:
        return json.dumps(raw, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return str(raw)


def normalize(raw: Any) -> Envelope:
    """Turn an inbound publish body into an envelope."""
    if isinstance(raw, (StructuredEnvelope, FallbackEnvelope)):
        return raw
    if isinstance(raw, dict) and raw:
        return StructuredEnvelope(data=raw)
    return FallbackEnvelope(text=_as_text(raw))


def _dumps(data: dict[str, Any]) -> str:
    # Compact JSON never contains a raw newline, so one data: line is enough
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)


def encode_message(envelope: Envelope) -> bytes:
    """Frame an envelope as a default-type SSE event."""
    return f"data: {_dumps(envelope.as_dict())}\n\n".encode("utf-8")


def encode_ping(timestamp_ms: int) -> bytes:
    """Frame a heartbeat carrying the producer timestamp (epoch ms)."""
    return f"event: {PING_EVENT}\ndata: {timestamp_ms}\n\n".encode("utf-8")


def encode_comment(text: str) -> bytes:
    """Frame an SSE comment line. EventSource clients ignore these."""
    return f": {text}\n\n".encode("utf-8")


def decode_frame(frame: Union[str, bytes]) -> tuple[str, str]:
    """Parse one framed unit into (event_type, data).

    Comment lines are skipped. Multiple data: lines are joined with
    newlines, as an EventSource client would.
    """
    if isinstance(frame, bytes):
        frame = frame.decode("utf-8")

    event_type = MESSAGE_EVENT
    data_lines: list[str] = []
    for line in frame.splitlines():
        if not line or line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event_type = value
        elif field == "data":
            data_lines.append(value)
    return event_type, "\n".join(data_lines)


def parse_body(body: bytes, content_type: str = "") -> Any:
    """Decode a raw publish request body. Never raises.

    JSON bodies are parsed (invalid JSON falls back to the raw text),
    form-encoded bodies become a flat dict, anything else is text.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    text = body.decode("utf-8", errors="replace")

    if media_type == "application/json" or media_type.endswith("+json"):
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    if media_type == "application/x-www-form-urlencoded":
        return dict(parse_qsl(text, keep_blank_values=True))

    return text
