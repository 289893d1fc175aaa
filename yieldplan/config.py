import os
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    # Fee estimation always runs against this account, never the user's own
    placeholder_address: str = os.getenv(
        "PLACEHOLDER_ADDRESS", "5DRewsYzhJqZXU3SRaWy1FSt5iDr875ao91aw5fjrJmDG4PE"
    )

    # Whole-unit price of one fee-asset token expressed in the input asset,
    # used when the fee has to be paid in kind
    alt_fee_ratio: Decimal = Decimal(os.getenv("ALT_FEE_RATIO", "1"))

    # Pool stats refresh
    stats_interval_seconds: float = float(os.getenv("STATS_INTERVAL_SECONDS", "3000"))
    eras_per_year: int = int(os.getenv("ERAS_PER_YEAR", "365"))
    bifrost_site_api: str = os.getenv("BIFROST_SITE_API", "https://api.bifrost.app/api/site")

    # Indexer request queue
    indexer_limit_rate: int = int(os.getenv("INDEXER_LIMIT_RATE", "2"))
    indexer_max_retry: int = int(os.getenv("INDEXER_MAX_RETRY", "9"))
    indexer_retry_delay: float = float(os.getenv("INDEXER_RETRY_DELAY", "1.0"))
    indexer_timeout: float = float(os.getenv("INDEXER_TIMEOUT", "20"))
    subscan_api_key: str = os.getenv("SUBSCAN_API_KEY", "")


settings = Settings()
