"""
Demonstration: Complete Production Record Lifecycle

This example walks one wheat harvest through the ledger:
creation, modification, a rejected edit, ownership transfer,
label append, verification and access revocation.

Run with: python -m examples.demo_lifecycle
"""

from agriledger.core import LedgerError, LedgerService
from agriledger.schemas import CallContext, Principal


SYSTEM_OWNER = Principal("cooperative-registrar")
FARMER_A = Principal("farmer-a")
FARMER_B = Principal("farmer-b")
AUDITOR = Principal("auditor")


def banner(title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)


def attempt(description: str, fn, *args, **kwargs):
    """Run an operation and print its outcome instead of raising."""
    try:
        result = fn(*args, **kwargs)
    except LedgerError as e:
        print(f"  [REJECTED] {description}: {e.kind.value} ({e})")
        return None
    print(f"  [OK] {description}" + (f" -> {result}" if result is not None else ""))
    return result


def main():
    banner("AgriLedger - Production Record Lifecycle Demonstration")
    print()

    ledger = LedgerService(system_owner=SYSTEM_OWNER)
    height = 100

    def as_caller(caller: Principal) -> CallContext:
        return CallContext(caller=caller, height=height)

    # ================================================================
    # STEP 1: CREATE
    # ================================================================
    banner("STEP 1: CREATE")
    record_index = attempt(
        "farmer-a registers a wheat harvest",
        ledger.create_production_record,
        as_caller(FARMER_A),
        product="Wheat",
        volume=500,
        notes="Field A",
        labels=["organic"],
    )
    print()

    # ================================================================
    # STEP 2: MODIFY
    # ================================================================
    height += 5
    banner("STEP 2: MODIFY")
    attempt(
        "farmer-a updates volume and labels",
        ledger.modify_production_record,
        as_caller(FARMER_A),
        record_index,
        "Wheat",
        600,
        "Field A",
        ["organic", "2024"],
    )
    attempt(
        "farmer-b tries to edit a record they do not own",
        ledger.modify_production_record,
        as_caller(FARMER_B),
        record_index,
        "Wheat",
        9999,
        "Field A",
        ["organic"],
    )
    print()

    # ================================================================
    # STEP 3: TRANSFER
    # ================================================================
    height += 5
    banner("STEP 3: TRANSFER OWNERSHIP")
    attempt(
        "farmer-a transfers the record to farmer-b",
        ledger.transfer_record_ownership,
        as_caller(FARMER_A),
        record_index,
        FARMER_B,
    )
    attempt(
        "farmer-a can no longer edit",
        ledger.modify_production_record,
        as_caller(FARMER_A),
        record_index,
        "Wheat",
        700,
        "Field A",
        ["organic"],
    )
    attempt(
        "farmer-b appends a certification label",
        ledger.append_metadata_labels,
        as_caller(FARMER_B),
        record_index,
        ["certified"],
    )
    print()

    # ================================================================
    # STEP 4: VERIFY
    # ================================================================
    height += 10
    banner("STEP 4: VERIFY AUTHENTICITY")
    result = attempt(
        "farmer-a (still holds a grant) checks the producer is farmer-b",
        ledger.verify_production_authenticity,
        as_caller(FARMER_A),
        record_index,
        FARMER_B,
    )
    if result is not None:
        print(f"    authentic={result.is_authentic} age={result.ledger_age}")
    attempt(
        "auditor without a grant tries to verify",
        ledger.verify_production_authenticity,
        as_caller(AUDITOR),
        record_index,
        FARMER_B,
    )
    attempt(
        "system owner verifies against the wrong producer",
        ledger.verify_production_authenticity,
        as_caller(SYSTEM_OWNER),
        record_index,
        FARMER_A,
    )
    print()

    # ================================================================
    # STEP 5: ACCESS & LOCK
    # ================================================================
    banner("STEP 5: ACCESS & SECURITY LOCK")
    attempt(
        "farmer-b revokes farmer-a's viewing access",
        ledger.revoke_viewing_access,
        as_caller(FARMER_B),
        record_index,
        FARMER_A,
    )
    attempt(
        "farmer-b tries to revoke their own access",
        ledger.revoke_viewing_access,
        as_caller(FARMER_B),
        record_index,
        FARMER_B,
    )
    attempt(
        "system owner applies a security lock",
        ledger.apply_security_lock,
        as_caller(SYSTEM_OWNER),
        record_index,
    )
    print()

    banner("FINAL RECORD")
    print(ledger.record_store.get(record_index).model_dump_json(indent=2))


if __name__ == "__main__":
    main()
