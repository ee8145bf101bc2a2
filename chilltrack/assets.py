"""Photo asset persistence keyed by tracking token."""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from .models import AssetStatus, FilteredPhoto, PhotoAsset, PhotoKind

logger = logging.getLogger("chilltrack.assets")


class PhotoAssetStore(Protocol):
    """Storage contract the ingestion service relies on."""

    def get_by_token(self, token: str) -> List[PhotoAsset]: ...

    def add(self, asset: PhotoAsset) -> PhotoAsset: ...

    def add_many(self, assets: Iterable[PhotoAsset]) -> List[PhotoAsset]: ...

    def update_status(
        self, asset_id: int, status: AssetStatus, error_message: Optional[str] = None
    ) -> None: ...

    def remove(self, asset_id: int) -> None: ...

    def purge_token(self, token: str) -> int: ...


def photo_hash(url: str) -> str:
    return hashlib.md5(url.encode("utf-8")).hexdigest()


def build_assets(token: str, photos: Iterable[FilteredPhoto]) -> List[PhotoAsset]:
    """Convert classified photos into ``available`` assets, dropping duplicate hashes."""
    assets: List[PhotoAsset] = []
    seen = set()
    for photo in photos:
        digest = photo_hash(photo.url)
        if digest in seen:
            continue
        seen.add(digest)
        assets.append(
            PhotoAsset(
                token=token,
                url=photo.url,
                kind=photo.kind,
                width=photo.width or None,
                height=photo.height or None,
                hash=digest,
                status=AssetStatus.AVAILABLE,
            )
        )
    return assets


def count_photos(assets: Iterable[PhotoAsset]) -> int:
    """Number of available assets of kind ``photo``; this feeds the POD score."""
    return sum(
        1
        for asset in assets
        if asset.status is AssetStatus.AVAILABLE and asset.kind is PhotoKind.PHOTO
    )


class InMemoryPhotoAssetStore:
    """Dict-backed store, suitable for tests and single-process runs."""

    def __init__(self) -> None:
        self._assets: Dict[int, PhotoAsset] = {}
        self._next_id = 1

    def get_by_token(self, token: str) -> List[PhotoAsset]:
        return [asset for asset in self._assets.values() if asset.token == token]

    def add(self, asset: PhotoAsset) -> PhotoAsset:
        if asset.id is None:
            asset.id = self._next_id
        self._next_id = max(self._next_id, asset.id) + 1
        self._assets[asset.id] = asset
        return asset

    def add_many(self, assets: Iterable[PhotoAsset]) -> List[PhotoAsset]:
        return [self.add(asset) for asset in assets]

    def update_status(
        self, asset_id: int, status: AssetStatus, error_message: Optional[str] = None
    ) -> None:
        asset = self._assets.get(asset_id)
        if asset is None:
            raise KeyError(f"Unknown photo asset id {asset_id}")
        asset.status = status
        asset.error_message = error_message

    def remove(self, asset_id: int) -> None:
        self._assets.pop(asset_id, None)

    def purge_token(self, token: str) -> int:
        doomed = [asset_id for asset_id, asset in self._assets.items() if asset.token == token]
        for asset_id in doomed:
            del self._assets[asset_id]
        return len(doomed)

    def all(self) -> List[PhotoAsset]:
        return list(self._assets.values())


class JsonPhotoAssetStore(InMemoryPhotoAssetStore):
    """In-memory store mirrored to a JSON file after every write."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            records = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise RuntimeError(f"Unable to read photo asset store {self.path}: {exc}") from exc
        for record in records:
            super().add(PhotoAsset.from_dict(record))
        logger.debug("Loaded %d photo assets from %s", len(records), self.path)

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [asset.to_dict() for asset in self.all()]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def add(self, asset: PhotoAsset) -> PhotoAsset:
        asset = super().add(asset)
        self._save()
        return asset

    def add_many(self, assets: Iterable[PhotoAsset]) -> List[PhotoAsset]:
        added = [super(JsonPhotoAssetStore, self).add(asset) for asset in assets]
        self._save()
        return added

    def update_status(
        self, asset_id: int, status: AssetStatus, error_message: Optional[str] = None
    ) -> None:
        super().update_status(asset_id, status, error_message)
        self._save()

    def remove(self, asset_id: int) -> None:
        super().remove(asset_id)
        self._save()

    def purge_token(self, token: str) -> int:
        removed = super().purge_token(token)
        if removed:
            self._save()
        return removed
