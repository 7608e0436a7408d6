"""
Image collection reconciler - optimistic photo list kept in step with the remote store.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Literal, Optional, Sequence, Union

from ..client.base import ImageStore
from ..config import get_config
from ..errors import (
    CollaboratorError,
    ImageNotFoundError,
    ImageOperationError,
    InvalidImageError,
)
from ..models.image import ImageAsset


logger = logging.getLogger(__name__)

_op_ids = count(1)


@dataclass
class PendingOperation:
    """An optimistic change applied locally but not yet confirmed remotely."""
    kind: Literal["add", "remove", "reorder"]
    placeholder: Optional[ImageAsset] = None
    asset_id: Optional[str] = None
    order: tuple[str, ...] = ()
    op_id: int = field(default_factory=lambda: next(_op_ids))


def apply_order(images: list[ImageAsset], order: Sequence[str]) -> list[ImageAsset]:
    """
    Arrange images by an ordered id list.
    Persisted images named in `order` come first, then persisted images it
    does not name, then uploads still in flight. Relative order is kept
    inside the last two groups.
    """
    by_id = {img.id: img for img in images if img.is_persisted}
    ordered = [by_id[asset_id] for asset_id in order if asset_id in by_id]
    named = {img.id for img in ordered}
    rest = [img for img in images if img.is_persisted and img.id not in named]
    placeholders = [img for img in images if not img.is_persisted]
    return ordered + rest + placeholders


def reconcile(confirmed: list[ImageAsset], pending: list[PendingOperation]) -> list[ImageAsset]:
    """
    Compute the local view: confirmed images with pending operations replayed
    in issuance order, de-duplicated by id and renumbered 0..N-1.
    """
    images = list(confirmed)
    for op in pending:
        if op.kind == "add" and op.placeholder is not None:
            images.append(op.placeholder)
        elif op.kind == "remove":
            images = [img for img in images if img.id != op.asset_id]
        elif op.kind == "reorder":
            images = apply_order(images, op.order)

    seen: set[str] = set()
    unique = []
    for img in images:
        if img.id is not None:
            if img.id in seen:
                continue
            seen.add(img.id)
        unique.append(img)

    return [img.model_copy(update={"position": i}) for i, img in enumerate(unique)]


class ImageCollectionReconciler:
    """
    Owns the ordered photo list of one profile.

    Every mutation is applied to the local view immediately and then sent to
    the image store. Remote calls run one at a time in the order they were
    issued. When a call fails its optimistic change is dropped, so the local
    view falls back to what the store has confirmed, and the failure is
    raised as ImageOperationError(rolled_back=True).
    """

    def __init__(
        self,
        profile_id: str,
        store: ImageStore,
        images: Optional[list[ImageAsset]] = None,
        max_bytes: Optional[int] = None,
        allowed_content_prefix: Optional[str] = None,
    ):
        config = get_config()
        self.profile_id = profile_id
        self.store = store
        self.max_bytes = config.images.max_bytes if max_bytes is None else max_bytes
        self.allowed_content_prefix = (
            config.images.allowed_content_prefix
            if allowed_content_prefix is None
            else allowed_content_prefix
        )

        self._confirmed: list[ImageAsset] = reconcile(
            sorted(images or [], key=lambda img: img.position), []
        )
        self._pending: list[PendingOperation] = []
        self._local: list[ImageAsset] = list(self._confirmed)
        self._lock = asyncio.Lock()
        self.last_error: Optional[str] = None

    @classmethod
    async def load(cls, profile_id: str, store: ImageStore, **kwargs) -> "ImageCollectionReconciler":
        """Create a reconciler seeded with the profile's stored photos."""
        images = await store.list_images(profile_id)
        return cls(profile_id, store, images=images, **kwargs)

    @property
    def images(self) -> list[ImageAsset]:
        """Current local view, including uploads still in flight."""
        return list(self._local)

    @property
    def confirmed(self) -> list[ImageAsset]:
        """What the remote store has acknowledged so far."""
        return reconcile(self._confirmed, [])

    @property
    def persisted_ids(self) -> list[str]:
        """Ordered ids of persisted photos in the local view."""
        return [img.id for img in self._local if img.is_persisted]

    @property
    def pending_count(self) -> int:
        return sum(1 for img in self._local if not img.is_persisted)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def _refresh(self) -> None:
        self._local = reconcile(self._confirmed, self._pending)

    def _begin(self, op: PendingOperation) -> None:
        self._pending.append(op)
        self._refresh()

    def _settle(self, op: PendingOperation) -> None:
        self._pending = [p for p in self._pending if p.op_id != op.op_id]
        self._refresh()

    def _failed(self, operation: str, error: Exception) -> ImageOperationError:
        reason = error.reason if isinstance(error, CollaboratorError) else str(error)
        failure = ImageOperationError(operation, reason or "Unknown error", rolled_back=True)
        self.last_error = str(failure)
        logger.warning(f"[{self.profile_id}] {failure}")
        return failure

    def _check_upload(self, data: bytes, content_type: str) -> None:
        if not data:
            raise InvalidImageError("Image file is empty")
        if not content_type.startswith(self.allowed_content_prefix):
            raise InvalidImageError(f"Unsupported file type: {content_type}")
        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            raise InvalidImageError(f"Image is larger than {limit_mb:.0f} MB")

    async def add(
        self,
        data: bytes,
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
    ) -> ImageAsset:
        """
        Upload a photo.

        A placeholder is shown at the end of the list right away and is
        replaced in place by the persisted asset once the upload succeeds.

        Returns:
            The persisted asset as it appears in the local view

        Raises:
            InvalidImageError: Rejected locally, nothing was sent
            ImageOperationError: Upload failed, the placeholder was removed
        """
        self._check_upload(data, content_type)
        self.last_error = None

        placeholder = ImageAsset(file_name=filename)
        op = PendingOperation(kind="add", placeholder=placeholder)
        self._begin(op)
        logger.info(f"[{self.profile_id}] Uploading {filename} ({len(data)} bytes)")

        async with self._lock:
            try:
                asset = await self.store.upload_image(self.profile_id, data, filename, content_type)
            except Exception as e:
                raise self._failed("upload image", e) from e
            else:
                # Keep the placeholder's key so the entry stays the same item
                self._confirmed.append(asset.model_copy(update={"local_key": placeholder.local_key}))
            finally:
                self._settle(op)

        logger.info(f"[{self.profile_id}] Uploaded image {asset.id}")
        return next(img for img in self._local if img.local_key == placeholder.local_key)

    async def remove(self, asset_id: str) -> None:
        """
        Delete a persisted photo.

        Raises:
            ImageNotFoundError: The id is not in the local list (e.g. already removed)
            ImageOperationError: Delete failed, the photo was restored
        """
        if not any(img.id == asset_id for img in self._local):
            raise ImageNotFoundError(asset_id)
        self.last_error = None

        op = PendingOperation(kind="remove", asset_id=asset_id)
        self._begin(op)
        logger.info(f"[{self.profile_id}] Deleting image {asset_id}")

        async with self._lock:
            try:
                await self.store.delete_image(self.profile_id, asset_id)
            except Exception as e:
                raise self._failed("delete image", e) from e
            else:
                self._confirmed = [img for img in self._confirmed if img.id != asset_id]
            finally:
                self._settle(op)

    async def reorder(self, new_order: Sequence[Union[str, ImageAsset]]) -> None:
        """
        Reorder persisted photos.

        Accepts ids or assets; uploads still in flight are ignored and stay
        at the end. The list must name every persisted photo exactly once.
        A photo restored by a failed remove issued earlier is kept after
        the named ones in the order that is sent.

        Raises:
            ValueError: The order does not match the persisted photos
            ImageOperationError: Remote update failed, the previous order was restored
        """
        ids = [item.id if isinstance(item, ImageAsset) else item for item in new_order]
        ids = [asset_id for asset_id in ids if asset_id is not None]

        current = self.persisted_ids
        if len(set(ids)) != len(ids) or set(ids) != set(current):
            raise ValueError("Reorder must list every photo exactly once")
        if ids == current:
            logger.debug(f"[{self.profile_id}] Order unchanged, skipping update")
            return
        self.last_error = None

        op = PendingOperation(kind="reorder", order=tuple(ids))
        self._begin(op)
        logger.info(f"[{self.profile_id}] Reordering {len(ids)} images")

        async with self._lock:
            # Earlier operations have settled by now
            payload = [img.id for img in apply_order(self._confirmed, ids)]
            try:
                await self.store.reorder_images(self.profile_id, payload)
            except Exception as e:
                raise self._failed("reorder images", e) from e
            else:
                self._confirmed = apply_order(self._confirmed, payload)
            finally:
                self._settle(op)

    async def refresh(self) -> None:
        """Replace the confirmed list with the store's current photos."""
        async with self._lock:
            images = await self.store.list_images(self.profile_id)
            self._confirmed = reconcile(sorted(images, key=lambda img: img.position), [])
            self._refresh()
