"""
Canonical Production Record Schema

A ProductionRecord is one harvest entry with exactly one producer.
The producer is the only authority that may change it.
"""

from typing import NewType

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Opaque caller identity supplied by the host. Compared for equality only.
Principal = NewType("Principal", str)


def byte_length(text: str) -> int:
    """Length of a text field as stored: UTF-8 bytes, not characters."""
    return len(text.encode("utf-8"))


class ProductionRecord(BaseModel):
    """
    A single production entry.

    Records are frozen. Every mutation produces a new record
    via model_validate and replaces the stored one.
    """
    model_config = ConfigDict(frozen=True)

    record_index: int = Field(
        ...,
        ge=1,
        description="Primary key minted by the sequencer. Never reused."
    )

    product_identifier: str = Field(
        ...,
        description="Crop or product name (1-64 bytes)",
        examples=["Wheat", "Arabica coffee"]
    )

    producer_address: Principal = Field(
        ...,
        description="Current owning producer. Changes only via ownership transfer."
    )

    output_volume: int = Field(
        ...,
        ge=1,
        lt=1_000_000_000,
        description="Yield quantity"
    )

    creation_height: int = Field(
        ...,
        ge=0,
        description="Host height at creation time. IMMUTABLE."
    )

    location_notes: str = Field(
        ...,
        description="Where the product was grown (1-128 bytes)"
    )

    metadata_labels: tuple[str, ...] = Field(
        ...,
        min_length=1,
        max_length=10,
        description="Ordered tags, each 1-32 bytes"
    )

    @field_validator("product_identifier")
    @classmethod
    def product_within_bounds(cls, v: str) -> str:
        if not 1 <= byte_length(v) <= 64:
            raise ValueError("product_identifier must be 1-64 bytes")
        return v

    @field_validator("location_notes")
    @classmethod
    def notes_within_bounds(cls, v: str) -> str:
        if not 1 <= byte_length(v) <= 128:
            raise ValueError("location_notes must be 1-128 bytes")
        return v

    @field_validator("metadata_labels")
    @classmethod
    def labels_within_bounds(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for label in v:
            if not 1 <= byte_length(label) <= 32:
                raise ValueError(f"label {label!r} must be 1-32 bytes")
        return v


class AccessGrant(BaseModel):
    """
    Read permission for one accessor on one record.

    Absence of a grant means no access. A grant never confers
    mutation rights.
    """
    record_index: int = Field(..., ge=1)
    accessor: Principal
    permission_granted: bool = True


class VerificationResult(BaseModel):
    """
    Answer to: "Was record X produced by P?"

    A mismatch is a normal result, not an error.
    is_authentic and producer_match always carry the same value.
    """
    is_authentic: bool
    current_height: int = Field(..., ge=0)
    ledger_age: int = Field(
        ...,
        description="current_height - creation_height"
    )
    producer_match: bool
