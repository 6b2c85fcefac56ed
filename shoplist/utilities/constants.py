from typing import Final

# Logical collections (one JSON record per file, named by id)
MASTER_ITEMS: Final[str] = "master_items"
SHOPPING_LISTS: Final[str] = "shopping_lists"
SESSIONS: Final[str] = "sessions"
COLLECTIONS: Final[tuple] = (MASTER_ITEMS, SHOPPING_LISTS, SESSIONS)

# Single well-known slot for the in-progress trip
ACTIVE_SESSION_SLOT: Final[str] = "active_session.json"

# Image purposes -> directory under images/
PRODUCT: Final[str] = "product"
RECEIPT: Final[str] = "receipt"
IMAGE_AREAS: Final[dict[str, str]] = {PRODUCT: "images/products", RECEIPT: "images/receipts"}
IMAGE_EXTENSION: Final[str] = ".jpg"

# Portable list file
SHOPLIST_FORMAT_VERSION: Final[int] = 1
SHOPLIST_EXTENSION: Final[str] = ".shoplist"
IMPORTED_SUFFIX: Final[str] = " (imported)"
DEFAULT_EXPORT_NAME: Final[str] = "Shopping_List"

DEFAULT_CATEGORY_EMOJI: Final[str] = "📦"
BUILT_IN_CATEGORIES: Final[list[str]] = [
    "🥛 Dairy",
    "🍞 Bakery",
    "🥩 Meat",
    "🥦 Produce",
    "🧊 Frozen",
    "🥤 Drinks",
    "🍪 Snacks",
    "🥫 Canned / Pantry",
    "🧹 Cleaning",
    "🧴 Toiletries",
    "🍼 Baby",
    "🐾 Pets",
    "💊 Pharmacy",
    "🧁 Sweets",
    "🛒 Other",
]
