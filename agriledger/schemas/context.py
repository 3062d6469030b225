"""
Host-supplied call context and exported ledger state.
"""

from pydantic import BaseModel, ConfigDict, Field

from .record import AccessGrant, Principal, ProductionRecord


class CallContext(BaseModel):
    """
    What the hosting environment tells us about the current operation.

    The caller is stable for the duration of one operation.
    Heights never decrease between operations.
    """
    model_config = ConfigDict(frozen=True)

    caller: Principal = Field(
        ...,
        description="Identity of the invoker"
    )
    height: int = Field(
        ...,
        ge=0,
        description="Current host height"
    )


class LedgerState(BaseModel):
    """
    Logical shape of everything the ledger persists:
    two tables and one counter.
    """
    records: list[ProductionRecord] = Field(default_factory=list)
    grants: list[AccessGrant] = Field(default_factory=list)
    last_record_index: int = Field(
        default=0,
        ge=0,
        description="Last identifier minted by the sequencer"
    )
