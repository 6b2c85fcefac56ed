"""Product photos and receipts stored under timestamp-derived names.

References handed out by ``save`` are blob names (``images/products/<ms>.jpg``);
they are what catalog variants, list items and sessions keep on disk.
"""
import io
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from PIL import Image, UnidentifiedImageError

from shoplist.infra.Blob_Store import DirectoryBlobStore
from shoplist.utilities.clock import now_ms
from shoplist.utilities.config import IMAGE_MAX_SIZE, IMAGE_QUALITY
from shoplist.utilities.constants import IMAGE_AREAS, IMAGE_EXTENSION
from shoplist.utilities.errors import NotFound, StorageError, ValidationError

logger = logging.getLogger(__name__)


class ImageStore:
    def __init__(self, blobs: DirectoryBlobStore, max_size: int = IMAGE_MAX_SIZE, quality: int = IMAGE_QUALITY):
        self.blobs = blobs
        self.max_size = max_size
        self.quality = quality

    def initialize(self):
        for area in IMAGE_AREAS.values():
            self.blobs.ensure_dir(area)

    @staticmethod
    def _area(purpose: str) -> str:
        try:
            return IMAGE_AREAS[purpose]
        except KeyError:
            raise ValidationError(f"Unknown image purpose: {purpose!r}")

    def _downsample(self, data: bytes) -> bytes:
        """Shrink to fit max_size x max_size as JPEG; undecodable input is kept as-is."""
        if not self.max_size or self.max_size <= 0:
            return data
        try:
            with Image.open(io.BytesIO(data)) as img:
                if img.mode != "RGB":
                    img = img.convert("RGB")
                img.thumbnail((self.max_size, self.max_size))
                out = io.BytesIO()
                img.save(out, "JPEG", quality=self.quality)
                return out.getvalue()
        except Image.DecompressionBombError as e:
            raise ValidationError(f"Image is too large to store: {e}") from e
        except (UnidentifiedImageError, OSError) as e:
            logger.debug("Keeping original bytes, image could not be downsampled: %s", e)
            return data

    def _unique_name(self, area: str) -> str:
        stamp = now_ms()
        name = f"{area}/{stamp}{IMAGE_EXTENSION}"
        while self.blobs.exists(name):
            stamp += 1
            name = f"{area}/{stamp}{IMAGE_EXTENSION}"
        return name

    def save(self, source: Union[str, Path], purpose: str) -> str:
        '''Copy the image at ``source`` into the purpose area; returns the stored reference.'''
        area = self._area(purpose)
        try:
            data = Path(source).read_bytes()
        except FileNotFoundError:
            raise NotFound("image source", str(source))
        except OSError as e:
            raise StorageError(f"Cannot read image source {source}: {e}") from e
        reference = self._unique_name(area)
        self.blobs.write(reference, self._downsample(data))
        logger.info("Saved %s image %s", purpose, reference)
        return reference

    def is_managed(self, reference: Optional[str]) -> bool:
        if not reference:
            return False
        return any(reference.startswith(area + "/") for area in IMAGE_AREAS.values())

    def delete(self, reference: Optional[str]) -> bool:
        '''Remove a stored image; unknown or missing references are a no-op.'''
        if not self.is_managed(reference):
            return False
        removed = self.blobs.delete(reference)
        if removed:
            logger.info("Deleted image %s", reference)
        return removed

    def path_for(self, reference: str) -> Path:
        if not self.is_managed(reference):
            raise NotFound("image", reference)
        return self.blobs.path(reference)

    def list_references(self, purpose: Optional[str] = None) -> List[str]:
        areas = [self._area(purpose)] if purpose else list(IMAGE_AREAS.values())
        refs: List[str] = []
        for area in areas:
            refs.extend(self.blobs.list(area))
        return refs

    def sweep_orphans(self, valid_references: Iterable[str]) -> List[str]:
        """Delete every stored image (both areas) that no live record references."""
        valid: Set[str] = {r for r in valid_references if r}
        removed = []
        for reference in self.list_references():
            if reference in valid:
                continue
            if self.blobs.delete(reference):
                logger.info("Deleted orphaned image %s", reference)
                removed.append(reference)
        return removed
