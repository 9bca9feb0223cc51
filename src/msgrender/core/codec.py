"""JSON encoding of parsed payloads stored alongside messages."""

from __future__ import annotations

import json

from msgrender.core.models import ParsedPayload, Span


class PayloadDecodeError(ValueError):
    """Raised when stored payload bytes do not decode to a ParsedPayload."""


def encode_payload(payload: ParsedPayload) -> bytes:
    """Serialize a payload to compact UTF-8 JSON.

    Raises UnicodeEncodeError if the text holds lone surrogates.
    """

    data = {
        "version": payload.version,
        "text": payload.text,
        "spans": [
            {
                "start": span.start,
                "end": span.end,
                "styleBits": span.style_bits,
                "href": span.href,
            }
            for span in payload.spans
        ],
    }
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _require_int(value: object, name: str) -> int:
    # bool is an int subclass but never a valid offset or flag set
    if not isinstance(value, int) or isinstance(value, bool):
        raise PayloadDecodeError(f"{name} must be an integer")
    return value


def decode_payload(data: bytes) -> ParsedPayload:
    """Deserialize payload bytes. Span bounds are not checked here."""

    # ValueError covers bad UTF-8, bad JSON and oversized integer literals;
    # RecursionError comes from pathologically nested arrays or objects.
    try:
        raw = json.loads(data.decode("utf-8"))
    except (ValueError, RecursionError) as exc:
        raise PayloadDecodeError(f"Payload is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise PayloadDecodeError("Payload must be a JSON object")

    text = raw.get("text")
    if not isinstance(text, str):
        raise PayloadDecodeError("text must be a string")
    version = _require_int(raw.get("version"), "version")

    raw_spans = raw.get("spans", [])
    if not isinstance(raw_spans, list):
        raise PayloadDecodeError("spans must be a list")

    spans = []
    for item in raw_spans:
        if not isinstance(item, dict):
            raise PayloadDecodeError("span must be an object")
        href = item.get("href")
        if href is not None and not isinstance(href, str):
            raise PayloadDecodeError("href must be a string or null")
        spans.append(
            Span(
                start=_require_int(item.get("start"), "start"),
                end=_require_int(item.get("end"), "end"),
                style_bits=_require_int(item.get("styleBits"), "styleBits"),
                href=href,
            )
        )

    return ParsedPayload(version=version, text=text, spans=tuple(spans))
