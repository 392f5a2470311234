"""
Scryfall printing lookup.

Resolves card names to a printing (set code + collector number) with the
/cards/collection endpoint, which accepts up to 75 identifiers per request.
Respects Scryfall rate limits (10 requests/second).

https://scryfall.com/docs/api/cards/collection
"""

import asyncio
import logging
from typing import Any

import httpx

from cardlistcompare.config import settings
from cardlistcompare.models.card import CardPrinting, card_key

logger = logging.getLogger(__name__)

# Scryfall's per-request identifier limit
MAX_BATCH_SIZE = 75

USER_AGENT = "CardListCompare/1.0"


class MetadataLookupError(Exception):
    """Raised when a lookup batch cannot be fetched."""

    pass


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def printings_from_response(data: dict[str, Any]) -> dict[str, CardPrinting]:
    """
    Extract printings from a /cards/collection response body.

    Double-faced and split cards are also keyed by their front face name,
    since deck lists often write only that. The first printing seen for a
    key wins.
    """
    result: dict[str, CardPrinting] = {}

    for card in data.get("data", []):
        name = card.get("name")
        set_code = card.get("set")
        if not name or not set_code:
            continue

        printing = CardPrinting(
            set_code=str(set_code).lower(),
            collector_number=card.get("collector_number") or None,
        )
        keys = [card_key(name)]
        if " // " in name:
            keys.append(card_key(name.split(" // ")[0]))
        for key in keys:
            result.setdefault(key, printing)

    return result


class ScryfallClient:
    """
    Batched printing lookup against the Scryfall API.

    A failed batch is logged and skipped; the other batches still count.
    """

    def __init__(
        self,
        base_url: str | None = None,
        batch_size: int | None = None,
        batch_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.scryfall_api_url).rstrip("/")
        self.batch_size = min(batch_size or settings.scryfall_batch_size, MAX_BATCH_SIZE)
        self.batch_delay = settings.scryfall_batch_delay if batch_delay is None else batch_delay
        self.timeout = timeout or settings.scryfall_timeout

    async def lookup(self, names: list[str]) -> dict[str, CardPrinting]:
        """
        Look up printings for card names.

        Args:
            names: Card names, any casing; duplicates are collapsed

        Returns:
            Dict mapping card key to printing. Names Scryfall does not know
            are absent.
        """
        unique = list(dict.fromkeys(card_key(n) for n in names if n.strip()))
        result: dict[str, CardPrinting] = {}
        if not unique:
            return result

        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        ) as client:
            for i, batch in enumerate(_chunks(unique, self.batch_size)):
                if i > 0:
                    await asyncio.sleep(self.batch_delay)
                try:
                    found = await self._fetch_batch(client, batch)
                except MetadataLookupError as e:
                    logger.error("Scryfall batch %d failed: %s", i + 1, e)
                    continue
                for key, printing in found.items():
                    result.setdefault(key, printing)

        return result

    async def _fetch_batch(
        self, client: httpx.AsyncClient, names: list[str]
    ) -> dict[str, CardPrinting]:
        """
        POST one batch of identifiers.

        Raises:
            MetadataLookupError: If the request fails or returns an error status
        """
        payload = {"identifiers": [{"name": name} for name in names]}
        try:
            response = await client.post(f"{self.base_url}/cards/collection", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise MetadataLookupError(
                f"Failed to fetch {len(names)} card(s): HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise MetadataLookupError(f"Failed to fetch {len(names)} card(s): {e}") from e

        return printings_from_response(response.json())
