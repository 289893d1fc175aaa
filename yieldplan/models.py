from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .chain import UnsignedCall
from .errors import PathError
from .registry import AssetRegistry
from .utils import free_balance, parse_amount


class YieldPoolType(Enum):
    NATIVE_STAKING = "NATIVE_STAKING"
    NOMINATION_POOL = "NOMINATION_POOL"
    LIQUID_STAKING = "LIQUID_STAKING"
    LENDING = "LENDING"


class YieldProtocol(Enum):
    NATIVE_STAKING = "NATIVE_STAKING"
    NOMINATION_POOL = "NOMINATION_POOL"
    ACALA_LIQUID_STAKING = "ACALA_LIQUID_STAKING"
    BIFROST_LIQUID_STAKING = "BIFROST_LIQUID_STAKING"
    INTERLAY_LENDING = "INTERLAY_LENDING"


class YieldStepType(Enum):
    DEFAULT = "DEFAULT"
    CROSS_CHAIN_TRANSFER = "CROSS_CHAIN_TRANSFER"
    MINT_DERIVATIVE = "MINT_DERIVATIVE"
    NATIVE_BOND = "NATIVE_BOND"
    NATIVE_JOIN_POOL = "NATIVE_JOIN_POOL"


class ValidationStatus(Enum):
    OK = "OK"
    NOT_ENOUGH_FEE = "NOT_ENOUGH_FEE"
    NOT_ENOUGH_MIN_AMOUNT = "NOT_ENOUGH_MIN_AMOUNT"


class ExtrinsicType(Enum):
    TRANSFER_XCM = "transfer.xcm"
    MINT_LDOT = "mint.ldot"
    MINT_VDOT = "mint.vdot"
    MINT_QDOT = "mint.qdot"
    STAKING_BOND = "staking.bond"
    STAKING_JOIN_POOL = "staking.join_pool"


@dataclass(frozen=True)
class AssetEarning:
    slug: str
    apr: float


@dataclass(frozen=True)
class PoolStats:
    asset_earning: Tuple[AssetEarning, ...] = ()
    max_candidate_per_farmer: int = 1
    max_withdrawal_request_per_farmer: int = 1
    min_join_pool: int = 0
    min_withdrawal: int = 0
    total_apr: Optional[float] = None
    tvl: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assetEarning": [{"slug": e.slug, "apr": e.apr} for e in self.asset_earning],
            "maxCandidatePerFarmer": self.max_candidate_per_farmer,
            "maxWithdrawalRequestPerFarmer": self.max_withdrawal_request_per_farmer,
            "minJoinPool": str(self.min_join_pool),
            "minWithdrawal": str(self.min_withdrawal),
            "totalApr": self.total_apr,
            "tvl": None if self.tvl is None else str(self.tvl),
        }


@dataclass(frozen=True)
class PoolInfo:
    slug: str
    chain: str
    type: YieldPoolType
    protocol: YieldProtocol
    name: str
    input_assets: Tuple[str, ...]
    fee_assets: Tuple[str, ...]
    alt_input_assets: Tuple[str, ...] = ()
    derivative_assets: Tuple[str, ...] = ()
    stats: Optional[PoolStats] = None

    @property
    def input_asset(self) -> str:
        # Multi-asset pools: only the first declared asset is used
        return self.input_assets[0]

    @property
    def alt_input_asset(self) -> Optional[str]:
        return self.alt_input_assets[0] if self.alt_input_assets else None

    @property
    def fee_asset(self) -> str:
        return self.fee_assets[0]

    @property
    def min_join_pool(self) -> int:
        return self.stats.min_join_pool if self.stats else 0

    def with_stats(self, stats: PoolStats) -> "PoolInfo":
        return replace(self, stats=stats)


@dataclass(frozen=True)
class TransferMetadata:
    sending_value: int
    origin_asset: str
    destination_asset: str


@dataclass(frozen=True)
class Step:
    id: int
    type: YieldStepType
    name: str
    metadata: Optional[TransferMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "type": self.type.value, "name": self.name}
        if self.metadata is not None:
            data["metadata"] = {
                "sendingValue": str(self.metadata.sending_value),
                "originTokenSlug": self.metadata.origin_asset,
                "destinationTokenSlug": self.metadata.destination_asset,
            }
        return data


DEFAULT_FIRST_STEP = Step(id=0, type=YieldStepType.DEFAULT, name="Fill information")


@dataclass(frozen=True)
class FeeRecord:
    step_id: int
    slug: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"stepId": self.step_id, "slug": self.slug, "amount": str(self.amount)}


@dataclass(frozen=True)
class Path:
    steps: Tuple[Step, ...]
    total_fee: Tuple[FeeRecord, ...] = ()

    def __post_init__(self) -> None:
        if not self.steps:
            raise PathError("Path must contain at least the bootstrap step.")
        if self.steps[0].type != YieldStepType.DEFAULT:
            raise PathError("Path must start with the bootstrap step.")
        for index, step in enumerate(self.steps):
            if step.id != index:
                raise PathError(f"Step id {step.id} does not match its position {index}.")
        for fee in self.total_fee:
            if not 0 <= fee.step_id < len(self.steps):
                raise PathError(f"Fee record points at unknown step {fee.step_id}.")

    def fees_for(self, step_id: int) -> Tuple[FeeRecord, ...]:
        return tuple(fee for fee in self.total_fee if fee.step_id == step_id)

    def fee_for(self, step_id: int) -> Optional[FeeRecord]:
        fees = self.fees_for(step_id)
        return fees[0] if fees else None

    @property
    def transfer_step(self) -> Optional[Step]:
        """The cross-chain top-up, when it is the first operational step."""
        if len(self.steps) > 1 and self.steps[1].type == YieldStepType.CROSS_CHAIN_TRANSFER:
            return self.steps[1]
        return None

    @property
    def submit_step(self) -> Optional[Step]:
        for step in self.steps:
            if step.type not in (YieldStepType.DEFAULT, YieldStepType.CROSS_CHAIN_TRANSFER):
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [step.to_dict() for step in self.steps],
            "totalFee": [fee.to_dict() for fee in self.total_fee],
        }


class PathBuilder:
    """Appends steps with contiguous ids; the bootstrap step is always first."""

    def __init__(self) -> None:
        self._steps: List[Step] = [DEFAULT_FIRST_STEP]
        self._fees: List[FeeRecord] = []

    def add_step(
        self,
        step_type: YieldStepType,
        name: str,
        metadata: Optional[TransferMetadata] = None,
    ) -> Step:
        step = Step(id=len(self._steps), type=step_type, name=name, metadata=metadata)
        self._steps.append(step)
        return step

    def add_fee(self, step: Step, slug: str, amount: int) -> None:
        self._fees.append(FeeRecord(step_id=step.id, slug=slug, amount=amount))

    def build(self) -> Path:
        return Path(steps=tuple(self._steps), total_fee=tuple(self._fees))


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    status: ValidationStatus
    failed_step: Optional[Step] = None
    message: Optional[str] = None

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True, status=ValidationStatus.OK)

    @classmethod
    def failure(cls, status: ValidationStatus, step: Step, message: str) -> "ValidationResult":
        return cls(ok=False, status=status, failed_step=step, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "status": self.status.value,
            "failedStep": self.failed_step.to_dict() if self.failed_step else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class PlanningRequest:
    pool_info: PoolInfo
    amount: str
    balances: Mapping[str, str]
    registry: AssetRegistry

    @property
    def amount_value(self) -> int:
        return parse_amount(self.amount)

    def free(self, slug: Optional[str]) -> int:
        return free_balance(self.balances, slug)


@dataclass(frozen=True)
class SubmitYieldInput:
    amount: str
    validators: Tuple[str, ...] = ()
    pool_id: Optional[int] = None


@dataclass(frozen=True)
class CrossChainTransferRequest:
    origin_network_key: str
    destination_network_key: str
    from_address: str
    to_address: str
    value: str
    token_slug: str


@dataclass(frozen=True)
class ExecutionDescriptor:
    chain: str
    extrinsic_type: ExtrinsicType
    call: UnsignedCall
    routing: Optional[CrossChainTransferRequest] = field(default=None)
