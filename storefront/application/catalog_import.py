"""
CommerceML catalog import.

Reads the accounting system's export (catalog.xml with <Товар> entries and
offers.xml with <Предложение> entries), merges price, currency and stock from
the offers by <Ид>, and replaces the whole product table.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional, Union

from storefront.domain.models import Product
from storefront.interfaces.IProductRepository import IProductRepository

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

FULL_NAME_REQUISITE = "Полное наименование"
WEIGHT_REQUISITE = "Вес"
CATEGORY_REQUISITE = "ВидНоменклатуры"


def _strip_namespaces(root: ET.Element) -> ET.Element:
    # 1C exports declare a default namespace (urn:1C.ru:commerceml_2)
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]
    return root


def _load(path: PathLike) -> ET.Element:
    return _strip_namespaces(ET.parse(str(path)).getroot())


def _text(element: Optional[ET.Element], path: str) -> Optional[str]:
    if element is None:
        return None
    found = element.find(path)
    if found is None or found.text is None:
        return None
    return found.text.strip() or None


def _to_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value.replace(",", ".").replace(" ", ""))
    except ValueError:
        return None


def parse_offers(path: PathLike) -> Dict[str, dict]:
    root = _load(path)
    offers = {}
    for offer in root.iter("Предложение"):
        offer_id = _text(offer, "Ид")
        if not offer_id:
            continue
        price_node = offer.find("Цены/Цена")
        offers[offer_id] = {
            "price": _to_float(_text(price_node, "ЦенаЗаЕдиницу")),
            "currency": _text(price_node, "Валюта"),
            "quantity": _to_float(_text(offer, "Количество")),
        }
    return offers


def parse_catalog(path: PathLike) -> List[dict]:
    root = _load(path)
    products = []
    for item in root.iter("Товар"):
        external_id = _text(item, "Ид")
        name = _text(item, "Наименование")
        if not external_id or not name:
            logger.warning(f"⚠️ Skipping product without Ид/Наименование ({external_id})")
            continue

        requisites = {}
        for requisite in item.iter("ЗначениеРеквизита"):
            key = _text(requisite, "Наименование")
            if key:
                requisites[key] = _text(requisite, "Значение")

        unit = item.find("БазоваяЕдиница")
        products.append({
            "external_id": external_id,
            "name": name,
            "full_name": requisites.get(FULL_NAME_REQUISITE),
            "unit": unit.text.strip() if unit is not None and unit.text else None,
            "unit_code": unit.get("Код") if unit is not None else None,
            "group_id": _text(item, "Группы/Ид"),
            "category": requisites.get(CATEGORY_REQUISITE),
            "weight": _to_float(requisites.get(WEIGHT_REQUISITE)) or 0,
            "description": _text(item, "Описание"),
            "image": _text(item, "Картинка"),
            "attributes": requisites,
        })
    return products


def merge_catalog(catalog: List[dict], offers: Dict[str, dict]) -> List[Product]:
    merged = []
    for entry in catalog:
        offer = offers.get(entry["external_id"], {})
        quantity = offer.get("quantity")
        merged.append(Product(
            **entry,
            price=offer.get("price") or 0,
            currency=offer.get("currency"),
            quantity=quantity,
            in_stock=quantity is None or quantity > 0,
        ))
    return merged


def import_catalog(product_repo: IProductRepository, catalog_path: PathLike, offers_path: PathLike) -> int:
    catalog = parse_catalog(catalog_path)
    offers = parse_offers(offers_path)
    logger.info(f"Parsed {len(catalog)} products and {len(offers)} offers")
    return product_repo.replace_all(merge_catalog(catalog, offers))
