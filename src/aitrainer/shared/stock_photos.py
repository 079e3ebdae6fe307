"""Unsplash stock-photo search for business-type imagery."""

from __future__ import annotations

import logging

import httpx

from aitrainer.schemas.pattern import ImageDimensions, StockImage

logger = logging.getLogger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"

# Fixed English search query per business type (Italian and English labels).
QUERIES: dict[str, str] = {
    "ristorante": "restaurant food italian cuisine",
    "restaurant": "restaurant food italian cuisine",
    "parrucchiere": "hair salon beauty hairstyle",
    "hair salon": "hair salon beauty hairstyle",
    "fioraio": "flowers florist bouquet",
    "florist": "flowers florist bouquet",
    "meccanico": "car mechanic workshop auto",
    "mechanic": "car mechanic workshop auto",
}


def query_for(business_type: str) -> str:
    return QUERIES.get(business_type.strip().lower(), f"{business_type} business professional")


def _to_stock_image(photo: dict) -> StockImage:
    urls = photo.get("urls") or {}
    return StockImage(
        id=str(photo.get("id", "")),
        url=urls.get("regular", ""),
        thumb=urls.get("thumb", ""),
        description=photo.get("description") or photo.get("alt_description") or "",
        dimensions=ImageDimensions(
            width=photo.get("width") or 0,
            height=photo.get("height") or 0,
        ),
        tags=[t.get("title", "") for t in photo.get("tags") or [] if isinstance(t, dict)],
    )


class StockPhotoCollector:
    """Searches Unsplash for images matching a business type.

    Missing credentials and API failures degrade to an empty list; images
    are a nice-to-have for a stored pattern, never a reason to fail it.
    """

    def __init__(
        self,
        access_key: str = "",
        *,
        per_page: int = 20,
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_key = access_key
        self.per_page = per_page
        self.timeout = timeout
        self._transport = transport
        self._warned_missing_key = False

    async def collect(self, business_type: str) -> list[StockImage]:
        if not self.access_key:
            if not self._warned_missing_key:
                logger.warning("UNSPLASH_ACCESS_KEY not configured, skipping stock images")
                self._warned_missing_key = True
            return []

        params = {
            "query": query_for(business_type),
            "per_page": self.per_page,
            "orientation": "landscape",
        }
        headers = {"Authorization": f"Client-ID {self.access_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http:
                resp = await http.get(UNSPLASH_SEARCH_URL, params=params, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Stock photo search failed for %r: %s", business_type, exc)
            return []

        photos = (data.get("results") or []) if isinstance(data, dict) else []
        images = [_to_stock_image(p) for p in photos if isinstance(p, dict)]
        logger.info("Collected %d stock images for %r", len(images), business_type)
        return images
