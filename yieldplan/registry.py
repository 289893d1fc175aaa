from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from .errors import NotSupported


@dataclass(frozen=True)
class ChainInfo:
    slug: str
    name: str
    native_token_slug: str
    para_id: Optional[int] = None  # None for a relay chain

    @property
    def is_relay(self) -> bool:
        return self.para_id is None


@dataclass(frozen=True)
class Asset:
    slug: str
    origin_chain: str
    symbol: str
    decimals: int
    min_amount: int = 0
    on_chain_info: Mapping[str, Any] = field(default_factory=dict)


class AssetRegistry:
    """Read-only lookup of chain and asset metadata by slug."""

    def __init__(self, chains: Iterable[ChainInfo], assets: Iterable[Asset]) -> None:
        self._chains: Dict[str, ChainInfo] = {c.slug: c for c in chains}
        self._assets: Dict[str, Asset] = {a.slug: a for a in assets}

    def get_asset(self, slug: str) -> Asset:
        try:
            return self._assets[slug]
        except KeyError:
            raise NotSupported(f"Unknown asset: {slug}") from None

    def get_chain(self, slug: str) -> ChainInfo:
        try:
            return self._chains[slug]
        except KeyError:
            raise NotSupported(f"Unknown chain: {slug}") from None

    def native_asset(self, chain_slug: str) -> Asset:
        return self.get_asset(self.get_chain(chain_slug).native_token_slug)

    def min_amount(self, slug: str) -> int:
        return self.get_asset(slug).min_amount

    def __contains__(self, slug: object) -> bool:
        return slug in self._assets or slug in self._chains
