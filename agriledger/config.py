"""
Ledger Configuration

Handles deployment settings and environment-based configuration.

Environment Variables:
    AGRILEDGER_SYSTEM_OWNER: Identity that deployed the ledger
        (default "system-owner")
    AGRILEDGER_STORE_DRIVER: Which store implementation to use
        - "memory" (default, the only driver shipped)
    AGRILEDGER_LOG_LEVEL / AGRILEDGER_LOG_FORMAT / AGRILEDGER_PRODUCTION:
        read by agriledger.observability
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum

from .core.ledger import LedgerService
from .observability import _get_log_level, _use_json_logging, setup_logging
from .schemas import Principal


DEFAULT_SYSTEM_OWNER = "system-owner"


class StoreDriver(str, Enum):
    """Supported store drivers."""
    MEMORY = "memory"


def get_store_driver() -> StoreDriver:
    """
    Get the store driver to use.

    Raises:
        ValueError: if AGRILEDGER_STORE_DRIVER names an unknown driver
    """
    explicit = os.getenv("AGRILEDGER_STORE_DRIVER", "").lower()

    if not explicit or explicit == "memory":
        return StoreDriver.MEMORY

    raise ValueError(
        f"Unknown AGRILEDGER_STORE_DRIVER: {explicit}. "
        f"Valid values: {', '.join(d.value for d in StoreDriver)}"
    )


@dataclass
class LedgerConfig:
    """Deployment configuration for one ledger instance."""
    system_owner: str = DEFAULT_SYSTEM_OWNER
    store_driver: StoreDriver = StoreDriver.MEMORY
    log_level: int = logging.INFO
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - AGRILEDGER_SYSTEM_OWNER
        - AGRILEDGER_STORE_DRIVER
        - AGRILEDGER_LOG_LEVEL
        - AGRILEDGER_LOG_FORMAT
        - AGRILEDGER_PRODUCTION
        """
        owner = os.getenv("AGRILEDGER_SYSTEM_OWNER", DEFAULT_SYSTEM_OWNER).strip()
        if not owner:
            raise ValueError("AGRILEDGER_SYSTEM_OWNER must not be empty")

        return cls(
            system_owner=owner,
            store_driver=get_store_driver(),
            log_level=_get_log_level(),
            json_logs=_use_json_logging(),
        )

    def configure_logging(self, stream=None) -> None:
        """Install the log handler at this config's level and format."""
        setup_logging(stream, level=self.log_level, json_logs=self.json_logs)

    def build_ledger(self) -> LedgerService:
        """Construct a LedgerService backed by the configured stores."""
        from .db.store import InMemoryAccessStore, InMemoryRecordStore, Sequencer

        if self.store_driver == StoreDriver.MEMORY:
            return LedgerService(
                system_owner=Principal(self.system_owner),
                record_store=InMemoryRecordStore(),
                access_store=InMemoryAccessStore(),
                sequencer=Sequencer(),
            )

        raise ValueError(f"Unsupported store driver: {self.store_driver}")
