"""
reader.py - JSON Input Boundary

Builds validated Order and PaymentMethod records from JSON files.

Expected shapes:
    orders.json:          [{"id": "ORDER1", "value": "100.00", "promotions": ["mZysk"]}, ...]
    paymentmethods.json:  [{"id": "PUNKTY", "discount": "15", "limit": "100.00"}, ...]

Numbers may be given as JSON strings or JSON numbers. JSON numbers with a
fraction are decoded straight to Decimal, never through float.
"""

from __future__ import annotations
from decimal import Decimal
import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Union

from .core import Order, PaymentMethod, InputFormatError


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _load_json_array(path: PathLike, what: str) -> List[Any]:
    path = Path(path)
    logger.info("Reading %s from: %s", what, path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f, parse_float=Decimal)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse %s from %s: %s", what, path, e)
            raise InputFormatError(f"Malformed JSON in {path}: {e}") from e
        except UnicodeDecodeError as e:
            logger.error("Failed to decode %s from %s: %s", what, path, e)
            raise InputFormatError(f"{path} is not valid UTF-8: {e}") from e
    if not isinstance(data, list):
        raise InputFormatError(f"Expected a JSON array of {what} in {path}, got {type(data).__name__}")
    return data


def _require_object(item: Any, index: int, what: str) -> Mapping[str, Any]:
    if not isinstance(item, Mapping):
        raise InputFormatError(f"{what} #{index} must be a JSON object, got {type(item).__name__}")
    return item


def parse_orders(data: List[Any]) -> List[Order]:
    """Build Orders from decoded JSON objects, keeping input order."""
    orders = []
    for i, item in enumerate(data):
        obj = _require_object(item, i, "Order")
        orders.append(Order(obj.get("id"), obj.get("value"), obj.get("promotions")))
    return orders


def parse_payment_methods(data: List[Any]) -> List[PaymentMethod]:
    """Build PaymentMethods from decoded JSON objects, keeping input order."""
    methods = []
    for i, item in enumerate(data):
        obj = _require_object(item, i, "PaymentMethod")
        methods.append(PaymentMethod(obj.get("id"), obj.get("discount"), obj.get("limit")))
    return methods


def read_orders(path: PathLike) -> List[Order]:
    """
    Read orders from a JSON file.

    Raises:
        OSError: If the file cannot be read
        InputFormatError: If the file is not a JSON array of objects
        PaymentError: If a record fails validation
    """
    orders = parse_orders(_load_json_array(path, "orders"))
    logger.info("Successfully read %d orders.", len(orders))
    return orders


def read_payment_methods(path: PathLike) -> List[PaymentMethod]:
    """
    Read payment methods from a JSON file.

    Raises:
        OSError: If the file cannot be read
        InputFormatError: If the file is not a JSON array of objects
        PaymentError: If a record fails validation
    """
    methods = parse_payment_methods(_load_json_array(path, "payment methods"))
    logger.info("Successfully read %d payment methods.", len(methods))
    return methods
