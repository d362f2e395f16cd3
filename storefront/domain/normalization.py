import re
import unicodedata
from typing import Any, Dict, List, Optional

from storefront.core.config import ImageUrlConfig

BREVE = "\u0306"  # keeps "й" distinct from "и"

TRANSLIT = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "e",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sch", "ъ": "",
    "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
}


# ---------------------------------------------------------
# TEXT (search shadow fields & queries)
# ---------------------------------------------------------
def normalize_search_text(value: Optional[str]) -> str:
    """
    Lower-cases and folds diacritics so "Ёлка" and "елка" compare equal.
    Whitespace is trimmed and collapsed.
    """
    if not value:
        return ""
    text = " ".join(str(value).split()).lower().replace("ё", "е")
    decomposed = unicodedata.normalize("NFD", text)
    folded = "".join(
        ch for ch in decomposed
        if ch == BREVE or not unicodedata.combining(ch)
    )
    return unicodedata.normalize("NFC", folded)


def apply_search_fields(product) -> bool:
    """Refreshes the product's normalized shadow fields. Returns True if any changed."""
    name_search = normalize_search_text(product.name)
    full_name_search = normalize_search_text(product.full_name)
    changed = product.name_search != name_search or product.full_name_search != full_name_search
    product.name_search = name_search
    product.full_name_search = full_name_search
    return changed


def slugify(name: str, suffix: str = "") -> str:
    text = normalize_search_text(name)
    text = "".join(TRANSLIT.get(ch, ch) for ch in text)
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    if suffix:
        suffix = re.sub(r"[^a-z0-9]+", "", suffix.lower())
        text = f"{text}-{suffix}" if text else suffix
    return text


# ---------------------------------------------------------
# IMAGE URLS
# ---------------------------------------------------------
def normalize_image_url(image_url: Optional[str], config: ImageUrlConfig) -> str:
    """
    Turns any image reference into an absolute public URL.

    1. empty -> fallback image
    2. internal host prefix (backend:5000, localhost:5000, ...) -> public URL
    3. absolute http(s) -> unchanged
    4. "/path" -> public URL + path
    5. "path" -> public URL + "/" + path
    """
    if not image_url or not isinstance(image_url, str) or not image_url.strip():
        return config.fallback_image

    url = image_url.strip()

    for prefix in config.internal_prefixes:
        if re.match(re.escape(prefix) + r"(?=[/?#]|$)", url, re.IGNORECASE):
            url = config.public_url + url[len(prefix):]
            break

    if url.startswith("http://") or url.startswith("https://"):
        return url

    if url.startswith("/"):
        return f"{config.public_url}{url}"

    return f"{config.public_url}/{url}"


def normalize_items_images(items: List[Dict[str, Any]], config: ImageUrlConfig) -> List[Dict[str, Any]]:
    """Returns copies of the flat line items with their image normalized."""
    normalized = []
    for item in items:
        copy = dict(item)
        copy["image"] = normalize_image_url(item.get("image"), config)
        normalized.append(copy)
    return normalized


# ---------------------------------------------------------
# LINE ITEMS
# ---------------------------------------------------------
def transform_items(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flat {id, name, price, image, quantity} -> {product: {...}, quantity}."""
    return [
        {
            "product": {
                "id": str(item["id"]),
                "name": item["name"],
                "price": item["price"],
                "image": item.get("image") or "",
            },
            "quantity": int(item["quantity"]),
        }
        for item in items
    ]


def line_total(item: Dict[str, Any]) -> float:
    return round(item["product"]["price"] * item["quantity"], 2)
