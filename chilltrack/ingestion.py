"""Photo ingestion: fetch tracking pages, classify photos, persist assets.

The persisted asset status is the only cache. A token that already has
``available`` assets is never fetched again, and concurrent requests for the
same token share a single in-flight task.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from .assets import PhotoAssetStore, build_assets, count_photos
from .classifier import classify
from .config import FULL_RESOLUTION_POLICY, IngestionConfig, PhotoFilterPolicy
from .models import AssetStatus, PhotoAsset, PhotoCandidate

logger = logging.getLogger("chilltrack.ingestion")

NO_PHOTOS_MESSAGE = "No photos found in tracking page"

CandidateFetcher = Callable[[str], Awaitable[List[PhotoCandidate]]]


@dataclass
class IngestionResult:
    token: str
    assets: List[PhotoAsset]
    fetched: bool
    attempts: int = 0
    error: Optional[str] = None

    @property
    def photo_count(self) -> int:
        return count_photos(self.assets)


class PhotoIngestionService:
    def __init__(
        self,
        fetcher: CandidateFetcher,
        store: PhotoAssetStore,
        policy: PhotoFilterPolicy = FULL_RESOLUTION_POLICY,
        config: Optional[IngestionConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.policy = policy
        self.config = config or IngestionConfig()
        self._sleep = sleep
        self._in_flight: Dict[str, asyncio.Task] = {}

    def _available(self, token: str) -> List[PhotoAsset]:
        return [
            asset
            for asset in self.store.get_by_token(token)
            if asset.status is AssetStatus.AVAILABLE
        ]

    def photo_count(self, token: str) -> int:
        return count_photos(self.store.get_by_token(token))

    async def ingest(self, token: str) -> IngestionResult:
        """Return stored photos for ``token``, fetching them at most once."""
        existing = self._available(token)
        if existing:
            return IngestionResult(token=token, assets=existing, fetched=False)

        task = self._in_flight.get(token)
        if task is None:
            task = asyncio.ensure_future(self._run(token))
            self._in_flight[token] = task
            task.add_done_callback(lambda _: self._in_flight.pop(token, None))
        return await asyncio.shield(task)

    async def ingest_many(self, tokens: Iterable[str]) -> List[IngestionResult]:
        """Ingest several tokens with bounded concurrency and staggered starts."""
        semaphore = asyncio.Semaphore(max(1, self.config.concurrency))
        unique = list(dict.fromkeys(t for t in tokens if t))

        async def _one(index: int, token: str) -> IngestionResult:
            if index and self.config.rate_limit_delay:
                await self._sleep(index * self.config.rate_limit_delay)
            async with semaphore:
                return await self.ingest(token)

        return list(await asyncio.gather(*(_one(i, t) for i, t in enumerate(unique))))

    async def _run(self, token: str) -> IngestionResult:
        placeholder = self.store.add(
            PhotoAsset(token=token, url="", status=AssetStatus.PENDING)
        )
        attempts = 0
        last_error = ""
        while attempts <= self.config.max_retries:
            attempts += 1
            try:
                logger.info("Extracting photos for %s (attempt %d)", token, attempts)
                candidates = await self.fetcher(token)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # pylint: disable=broad-except
                last_error = str(exc) or exc.__class__.__name__
                logger.warning("Error extracting photos for %s: %s", token, last_error)
                if attempts > self.config.max_retries:
                    break
                delay = self.config.retry_backoff * (2 ** (attempts - 1))
                logger.info(
                    "Retry %d/%d for %s in %.1fs",
                    attempts,
                    self.config.max_retries,
                    token,
                    delay,
                )
                await self._sleep(delay)
                continue
            return self._store_photos(token, placeholder, candidates, attempts)

        logger.error("Failed to process %s after %d attempts", token, attempts)
        self.store.update_status(placeholder.id, AssetStatus.FAILED, last_error)
        return IngestionResult(
            token=token, assets=[], fetched=True, attempts=attempts, error=last_error
        )

    def _store_photos(
        self,
        token: str,
        placeholder: PhotoAsset,
        candidates: List[PhotoCandidate],
        attempts: int,
    ) -> IngestionResult:
        photos = classify(candidates, self.policy)
        if not photos:
            self.store.update_status(placeholder.id, AssetStatus.FAILED, NO_PHOTOS_MESSAGE)
            logger.info("No photos found for %s", token)
            return IngestionResult(
                token=token,
                assets=[],
                fetched=True,
                attempts=attempts,
                error=NO_PHOTOS_MESSAGE,
            )

        self.store.remove(placeholder.id)
        known = {asset.hash for asset in self.store.get_by_token(token) if asset.hash}
        fresh = [asset for asset in build_assets(token, photos) if asset.hash not in known]
        stored = self.store.add_many(fresh)
        logger.info(
            "Stored %d photos for %s (%d candidates, %d duplicates)",
            len(stored),
            token,
            len(candidates),
            len(photos) - len(stored),
        )
        return IngestionResult(token=token, assets=stored, fetched=True, attempts=attempts)
