"""
Plant.id identification client.

POSTs a base64 photo to the Plant.id v3 ``/identification`` endpoint and
returns the raw payload.  ``extract_candidates`` condenses the payload into
the few suggestions the chat UI shows.
"""
from __future__ import annotations

import base64
import logging
import os
from typing import Any, Dict, List, Optional

import aiofiles
import httpx

from garden_catalog.config import settings

logger = logging.getLogger(__name__)


class PlantIdNotConfiguredError(Exception):
    """PLANTID_API_KEY is not set."""


class PlantIdentificationError(Exception):
    """Plant.id returned an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def extract_candidates(payload: Dict[str, Any], limit: int = 3) -> List[Dict[str, Any]]:
    """
    Pull the top species suggestions out of a Plant.id response.

    Each candidate carries ``common_name`` (first listed common name, else
    the scientific name), ``scientific_name``, ``probability`` and
    ``confidence`` (probability as a whole percentage).
    """
    result = payload.get("result") or {}
    suggestions = (result.get("classification") or {}).get("suggestions") or []

    candidates: List[Dict[str, Any]] = []
    for suggestion in suggestions:
        if not isinstance(suggestion, dict):
            continue
        scientific = suggestion.get("name")
        details = suggestion.get("details") or {}
        common_names = details.get("common_names") or []
        common = common_names[0] if common_names else scientific
        if not common:
            continue
        try:
            probability = float(suggestion.get("probability", 0.0))
        except (TypeError, ValueError):
            probability = 0.0
        probability = max(0.0, min(1.0, probability))
        candidates.append({
            "common_name": str(common),
            "scientific_name": scientific,
            "probability": probability,
            "confidence": int(round(probability * 100)),
        })

    candidates.sort(key=lambda c: c["probability"], reverse=True)
    return candidates[:limit]


class PlantIdService:
    """Async wrapper around the Plant.id identification API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.PLANTID_API_KEY
        self.url = settings.PLANTID_API_URL
        self.timeout = httpx.Timeout(float(settings.PLANTID_TIMEOUT), connect=10.0)
        self.transport = transport

    async def load_upload_as_base64(self, image_url: str) -> Optional[str]:
        """
        Read a stored upload (``/uploads/<name>``) and base64-encode it.
        Returns None when the URL is not a local upload or the file is gone.
        """
        prefix = "/uploads/"
        if not image_url or not image_url.startswith(prefix):
            return None

        filename = os.path.basename(image_url[len(prefix):])
        path = os.path.join(settings.UPLOAD_DIR, filename)
        if not filename or not os.path.isfile(path):
            logger.warning("[Plant ID] Upload not found on disk: %s", path)
            return None

        async with aiofiles.open(path, "rb") as fh:
            data = await fh.read()
        return base64.b64encode(data).decode("ascii")

    async def identify(self, base64_image: str) -> Dict[str, Any]:
        """
        Identify the plant in *base64_image*.

        Raises:
            PlantIdNotConfiguredError: no API key.
            PlantIdentificationError: non-2xx response or transport failure.
        """
        if not self.api_key:
            raise PlantIdNotConfiguredError(
                "Plant identification service not configured. Please add PLANTID_API_KEY."
            )

        body = {
            "images": [base64_image],
            "latitude": settings.PLANTID_LATITUDE,
            "longitude": settings.PLANTID_LONGITUDE,
            "similar_images": True,
        }
        logger.info("[Plant ID] Sending request, base64 length: %d", len(base64_image))

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    self.url,
                    json=body,
                    headers={"Api-Key": self.api_key},
                )
        except httpx.TimeoutException as exc:
            logger.error("[Plant ID] Request timed out")
            raise PlantIdentificationError("Plant.id request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("[Plant ID] Connection error: %s", exc)
            raise PlantIdentificationError(f"Plant.id connection error: {exc}") from exc

        if not resp.is_success:
            try:
                detail: Any = resp.json()
            except ValueError:
                detail = resp.text[:300]
            logger.error(
                "[Plant ID] API error response: status=%d detail=%s",
                resp.status_code,
                detail,
            )
            raise PlantIdentificationError(
                f"Plant.id API error: {resp.reason_phrase} - {detail}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error("[Plant ID] Response is not JSON: %s", resp.text[:300])
            raise PlantIdentificationError("Plant.id returned a non-JSON response") from exc
        if not isinstance(payload, dict):
            raise PlantIdentificationError("Plant.id returned an unexpected payload")

        logger.info("[Plant ID] Success! Identified plant")
        return payload
