"""
Export and import of shopping lists as portable .shoplist files.
"""
from pathlib import Path
from typing import Union
import logging

from shoplist.domain.ShoppingList import ShoppingList
from shoplist.logic.core import ShoppingCore
from shoplist.logic.sharing.codec import export_filename
from shoplist.utilities.constants import SHOPLIST_EXTENSION
from shoplist.utilities.errors import InvalidFormat, NotFound, StorageError

logger = logging.getLogger(__name__)


def export_list_file(core: ShoppingCore, list_id: str, out_dir: Union[str, Path] = ".") -> Path:
    """Write ``<safe list name>.shoplist`` into ``out_dir`` and return its path."""
    shopping_list = core.lists.get_list(list_id)
    output_path = Path(out_dir) / export_filename(shopping_list)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(core.export_list(shopping_list.id))
    except OSError as e:
        raise StorageError(f"Cannot write {output_path}: {e}") from e
    logger.info(f"Exported list {shopping_list.name} to {output_path}")
    return output_path


def import_list_file(core: ShoppingCore, input_path: Union[str, Path]) -> ShoppingList:
    """Import a .shoplist file as a new list.

    Args:
        core: the ShoppingCore the list is saved into
        input_path: path of the file; other extensions are rejected
    """
    path = Path(input_path)
    if path.suffix.lower() != SHOPLIST_EXTENSION:
        raise InvalidFormat(f"Please select a {SHOPLIST_EXTENSION} file")
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise NotFound("list file", str(path))
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e}") from e
    shopping_list = core.import_list(data)
    logger.info(f"Imported {len(shopping_list.items)} item(s) from {path}")
    return shopping_list


# CLI interface
if __name__ == "__main__":
    import argparse
    import sys
    from shoplist.utilities.errors import ShoplistError

    parser = argparse.ArgumentParser(description='Export/Import shopping lists')
    parser.add_argument('action', choices=['export', 'import'], help='Action to perform')
    parser.add_argument('--list-id', help='Id of the list to export')
    parser.add_argument('--file', help='Input file (import) or output directory (export)')
    parser.add_argument('--data-dir', help='Data directory (defaults to SHOPLIST_DATA_DIR)')

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    core = ShoppingCore(args.data_dir)
    core.initialize()

    try:
        if args.action == 'export':
            if not args.list_id:
                print("Error: --list-id is required for export")
                sys.exit(1)
            result = export_list_file(core, args.list_id, args.file or ".")
            print(f"✓ Exported to: {result}")
        else:
            if not args.file:
                print("Error: --file is required for import")
                sys.exit(1)
            imported = import_list_file(core, args.file)
            print(f"✓ Imported '{imported.name}' ({len(imported.items)} items)")
    except ShoplistError as e:
        print(f"✗ {args.action.capitalize()} failed: {e}")
        sys.exit(1)
