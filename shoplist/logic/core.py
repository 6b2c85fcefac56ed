"""Wiring of the shopping core on one data directory.

ShoppingCore owns one instance of every manager, all sharing the same
blob store, so the API layer and the CLI reach the same objects.
"""
import logging
from pathlib import Path
from typing import Optional, Set, Union

from shoplist.domain.ShoppingList import ShoppingList
from shoplist.events.Event_Bus import EventBus
from shoplist.events.event_helpers import publish_orphans_swept
from shoplist.infra.Blob_Store import DirectoryBlobStore
from shoplist.infra.Collection_Store import CollectionStore
from shoplist.infra.Image_Store import ImageStore
from shoplist.infra.paths import DATA_DIR
from shoplist.logic.catalog.manager import CatalogManager
from shoplist.logic.catalog.migrations import migrate_legacy_items
from shoplist.logic.lists.manager import ListManager
from shoplist.logic.session.archive import SessionArchive
from shoplist.logic.session.tracker import SessionTracker
from shoplist.logic.sharing import codec
from shoplist.utilities.config import ORPHAN_SWEEP_ON_STARTUP
from shoplist.utilities.constants import COLLECTIONS

logger = logging.getLogger(__name__)


class ShoppingCore:
    def __init__(self, data_dir: Union[str, Path, None] = None, bus: Optional[EventBus] = None,
                 image_max_size: Optional[int] = None, sweep_on_startup: bool = ORPHAN_SWEEP_ON_STARTUP):
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
        self.bus = bus
        self.sweep_on_startup = sweep_on_startup
        self.blobs = DirectoryBlobStore(self.data_dir)
        self.store = CollectionStore(self.blobs)
        if image_max_size is None:
            self.images = ImageStore(self.blobs)
        else:
            self.images = ImageStore(self.blobs, max_size=image_max_size)
        self.catalog = CatalogManager(self.store, self.images, bus=bus)
        self.lists = ListManager(self.store, self.catalog)
        self.archive = SessionArchive(self.store, self.catalog, self.images, bus=bus)
        self.tracker = SessionTracker(self.store, self.catalog, self.lists, self.images, self.archive)

    def initialize(self) -> None:
        self.blobs.ensure_dir()
        for collection in COLLECTIONS:
            self.blobs.ensure_dir(collection)
        self.images.initialize()

    def startup(self) -> None:
        """Prepare storage, then run the best-effort maintenance jobs.

        Legacy migration and the orphan-image sweep never block startup:
        their failures are logged and dropped.
        """
        self.initialize()
        try:
            migrate_legacy_items(self.store)
        except Exception as e:
            logger.error(f"Legacy catalog migration failed: {e}")
        if not self.sweep_on_startup:
            return
        try:
            self.cleanup_orphaned_images()
        except Exception as e:
            logger.error(f"Orphaned image cleanup failed: {e}")

    def collect_image_references(self) -> Set[str]:
        '''Every image reference still held by a catalog variant, list item or session.'''
        refs: Set[str] = set()
        for item in self.catalog.list_master_items():
            refs.update(v.image for v in item.variants if v.image)
        for shopping_list in self.lists.list_lists():
            refs.update(i.image for i in shopping_list.items if i.image)
        for session in self.archive.list_sessions():
            if session.receipt_image:
                refs.add(session.receipt_image)
        active = self.tracker.get_active()
        if active is not None:
            if active.receipt_image:
                refs.add(active.receipt_image)
            refs.update(i.image for i in active.items if i.image)
        return refs

    def cleanup_orphaned_images(self):
        removed = self.images.sweep_orphans(self.collect_image_references())
        if removed:
            logger.info(f"Cleaned up {len(removed)} orphaned image(s)")
            publish_orphans_swept(removed, bus=self.bus)
        return removed

    # --- sharing --------------------------------------------------------------
    def export_list(self, list_id: str) -> bytes:
        return codec.export_list(self.lists.get_list(list_id))

    def import_list(self, data) -> ShoppingList:
        """Decode and save a .shoplist payload; nothing is written if decoding fails.

        Items are relinked to the local catalog by name and brand, creating
        zero-priced entries for products this device has never seen. Items
        without a name or brand keep the ids from the file.
        """
        shopping_list = codec.import_list(data)
        resolved = {}
        items = []
        seen = set()
        for item in shopping_list.items:
            if item.name.strip() and item.brand.strip():
                wanted = (item.name.strip().lower(), item.brand.strip().lower())
                if wanted not in resolved:
                    resolved[wanted] = self.catalog.find_or_create_variant(item.name, item.brand)
                item.master_item_id, item.variant_index = resolved[wanted]
            if item.key in seen:
                continue
            seen.add(item.key)
            items.append(item)
        shopping_list.items = items
        self.lists.save_list(shopping_list)
        logger.info("Imported list %s (%s)", shopping_list.name, shopping_list.id)
        return shopping_list
