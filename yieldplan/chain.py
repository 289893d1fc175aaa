from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .utils import get_logger

logger = get_logger("chain")


@dataclass(frozen=True)
class UnsignedCall:
    chain: str
    pallet: str
    method: str
    args: Tuple[Any, ...] = ()

    @property
    def call_id(self) -> str:
        return f"{self.pallet}.{self.method}"


class ChainApi:
    """
    Query/call capability for a set of chains.

    Implementations wrap a real RPC client; the planner only needs state
    queries and dispatch-fee estimation. Fee info follows the runtime's
    RuntimeDispatchInfo shape: {"partialFee": ..., "weight": ..., "class": ...}.
    """

    def build_call(self, chain: str, pallet: str, method: str, *args: Any) -> UnsignedCall:
        return UnsignedCall(chain=chain, pallet=pallet, method=method, args=tuple(args))

    async def query_state(self, chain: str, path: str, *params: Any) -> Any:
        raise NotImplementedError

    async def estimate_dispatch_fee(self, call: UnsignedCall, payer: str) -> Mapping[str, Any]:
        raise NotImplementedError


class StaticChainApi(ChainApi):
    """
    ChainApi answering from fixed tables, for dry runs and tests.

    fees: chain -> {call_id or "*": partial fee}
    state: chain -> {storage path: value}
    """

    def __init__(
        self,
        fees: Optional[Mapping[str, Mapping[str, Any]]] = None,
        state: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> None:
        self.fees: Dict[str, Dict[str, Any]] = {k: dict(v) for k, v in (fees or {}).items()}
        self.state: Dict[str, Dict[str, Any]] = {k: dict(v) for k, v in (state or {}).items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StaticChainApi":
        return cls(fees=data.get("fees"), state=data.get("state"))

    async def query_state(self, chain: str, path: str, *params: Any) -> Any:
        try:
            return self.state[chain][path]
        except KeyError:
            raise LookupError(f"{chain}: no state for {path}") from None

    async def estimate_dispatch_fee(self, call: UnsignedCall, payer: str) -> Mapping[str, Any]:
        table = self.fees.get(call.chain) or {}
        fee = table.get(call.call_id, table.get("*"))
        if fee is None:
            raise LookupError(f"{call.chain}: no fee for {call.call_id}")
        logger.debug("%s %s fee for %s: %s", call.chain, call.call_id, payer, fee)
        return {"partialFee": str(fee), "weight": 0, "class": "normal"}
