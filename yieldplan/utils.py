import json
import logging
import os
from typing import Any, Mapping, Optional


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(level)
        handler = logging.StreamHandler()
        fmt = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


def parse_amount(value: Any) -> int:
    """
    Parse a decimal-string encoded unsigned integer amount.

    Ints pass through; floats are refused since they cannot carry
    chain amounts without precision loss.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Amount must be an integer or decimal string, got {value!r}")
    if isinstance(value, int):
        amount = value
    else:
        text = str(value).strip()
        if not (text.isascii() and text.isdigit()):
            raise ValueError(f"Amount must be a non-negative integer string, got {value!r}")
        amount = int(text)
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {value!r}")
    return amount


def free_balance(balances: Mapping[str, Any], slug: Optional[str]) -> int:
    if not slug:
        return 0
    return parse_amount(balances.get(slug) or "0")


def json_dumps(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
