"""Wire format between detector and server: JSON, gzip-compressed, base64-encoded."""
from __future__ import annotations

import base64
import binascii
import gzip
import json
import logging
import zlib
from typing import Any

import httpx

from unused_css.errors import PayloadDecodeError, TransmissionError
from unused_css.model.report import TransmissionEnvelope

logger = logging.getLogger(__name__)

PAYLOAD_FIELD = "compressedData"


def encode_payload(envelope: TransmissionEnvelope) -> str:
    """Serialise *envelope* to the base64(gzip(JSON)) string the endpoint accepts."""
    raw = json.dumps(envelope.to_dict()).encode("utf-8")
    return base64.b64encode(gzip.compress(raw)).decode("ascii")


def decode_payload(payload: Any) -> TransmissionEnvelope:
    """Reverse :func:`encode_payload`.

    Raises :class:`PayloadDecodeError` for anything that is not valid base64,
    gzip, JSON or envelope-shaped.
    """
    if not isinstance(payload, str) or not payload:
        raise PayloadDecodeError("Missing compressed payload")
    try:
        compressed = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadDecodeError(f"Invalid base64 payload: {exc}", cause=exc) from exc
    try:
        raw = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as exc:
        raise PayloadDecodeError(f"Invalid gzip payload: {exc}", cause=exc) from exc
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PayloadDecodeError(f"Invalid JSON payload: {exc}", cause=exc) from exc
    return TransmissionEnvelope.from_dict(data)


class Transmitter:
    """Fire-and-forget POST of usage envelopes to the update endpoint.

    Failures are logged and never retried: the next page view produces an
    equivalent report.
    """

    def __init__(self, endpoint: str, client: httpx.Client | None = None) -> None:
        self._endpoint = endpoint
        self._client = client or httpx.Client(timeout=httpx.Timeout(10.0))
        self._owns_client = client is None

    def send(self, envelope: TransmissionEnvelope) -> dict[str, Any] | None:
        try:
            body = self.post(envelope)
        except TransmissionError as exc:
            logger.error("Error sending CSS usage for %s: %s", envelope.url, exc)
            return None
        logger.info("Successfully updated CSS for %s: %s", envelope.url, body)
        return body

    def post(self, envelope: TransmissionEnvelope) -> dict[str, Any]:
        """POST *envelope* once, raising :class:`TransmissionError` on any failure."""
        try:
            response = self._client.post(self._endpoint, json={PAYLOAD_FIELD: encode_payload(envelope)})
        except httpx.HTTPError as exc:
            raise TransmissionError(f"Request to {self._endpoint} failed: {exc}", cause=exc) from exc
        if response.is_error:
            raise TransmissionError(
                f"{self._endpoint} answered HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TransmissionError(
                f"{self._endpoint} returned a non-JSON body",
                status_code=response.status_code,
                cause=exc,
            ) from exc

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
