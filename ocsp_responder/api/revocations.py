"""
Administrative endpoints for synchronising revocation records
from the system of record.
"""
from typing import Dict, List

from fastapi import APIRouter, Depends

from ocsp_responder.api.deps import get_store
from ocsp_responder.core.logging import get_logger
from ocsp_responder.schemas.revocation import (
    BulkReplaceResponse,
    RevocationRecordIn,
    RevocationRecordResponse,
)
from ocsp_responder.services.revocation_store import RevocationStore

logger = get_logger(__name__)

router = APIRouter(tags=["revocations"])


@router.get("/all", response_model=Dict[str, RevocationRecordResponse])
def list_revocations(store: RevocationStore = Depends(get_store)):
    """
    Every record, keyed by serial number (as a string), sorted by serial
    """
    return {
        str(record.serial): RevocationRecordResponse.from_record(record)
        for record in store.snapshot()
    }


@router.put("/update", response_model=RevocationRecordResponse)
def update_revocation(
    record: RevocationRecordIn,
    store: RevocationStore = Depends(get_store),
):
    """
    Create or replace the record for one serial number.
    With `revoked: true` and no `revoked_at` the current time is stamped.
    """
    previous = store.get(record.serial)
    stored = store.upsert(record.to_record())
    action = "created" if previous is None else "updated"
    logger.info(f"Record {stored.serial} {action} (revoked_at={stored.revoked_at})")
    return RevocationRecordResponse.from_record(stored)


@router.put("/init", response_model=BulkReplaceResponse)
def init_revocations(
    records: List[RevocationRecordIn],
    store: RevocationStore = Depends(get_store),
):
    """
    Replace every record with the supplied list. An empty list clears the store.
    """
    stored = store.bulk_replace(record.to_record() for record in records)
    return BulkReplaceResponse(count=len(stored))
