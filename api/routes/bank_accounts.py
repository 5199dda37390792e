"""
Bank account routes: creation, micro-deposit and identity verification, charges
"""

import os
import tempfile
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, Response, UploadFile, status

from api.dependencies import get_bridge
from api.schemas import (
    BankAccountCreate,
    ChargeCreate,
    IdentitySubmission,
    MicroDeposits,
    RecordOut,
)
from payments.bridge import PaymentBridge
from payments.schemas import IdentityFields

router = APIRouter()

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024


@router.post("", response_model=RecordOut, status_code=status.HTTP_201_CREATED)
async def create_bank_account(
    body: BankAccountCreate, bridge: PaymentBridge = Depends(get_bridge)
):
    record = await bridge.create_bank_account(
        body.country_code, body.credit_token, body.debit_token, email=body.email
    )
    return RecordOut(id=record.get_id(), data=await record.load())


@router.get("/{record_id}", response_model=RecordOut)
async def get_bank_account(record_id: str, bridge: PaymentBridge = Depends(get_bridge)):
    record = bridge.get_bank_account(record_id)
    return RecordOut(id=record.get_id(), data=await record.load())


@router.post("/{record_id}/verify", status_code=status.HTTP_204_NO_CONTENT)
async def verify_bank_account(
    record_id: str, body: MicroDeposits, bridge: PaymentBridge = Depends(get_bridge)
):
    await bridge.verify_bank_account(bridge.get_bank_account(record_id), body.amounts)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{record_id}/identity", status_code=status.HTTP_204_NO_CONTENT)
async def verify_identity(
    record_id: str, body: IdentitySubmission, bridge: PaymentBridge = Depends(get_bridge)
):
    await bridge.verify_identity(bridge.get_bank_account(record_id), body.identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{record_id}/identity/document", status_code=status.HTTP_204_NO_CONTENT)
async def verify_identity_with_document(
    record_id: str,
    identity: Annotated[str, Form()],
    document: UploadFile,
    bridge: PaymentBridge = Depends(get_bridge),
):
    """Submit identity details as a JSON form field along with the document image."""
    fields = IdentityFields.model_validate_json(identity)
    content = await document.read()
    if len(content) > MAX_DOCUMENT_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Identity document too large (max 10MB)",
        )

    # The processor client uploads from a path, so spool the upload to disk
    suffix = Path(document.filename or "").suffix
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as spooled:
        spooled.write(content)
    try:
        await bridge.verify_identity(
            bridge.get_bank_account(record_id), fields, image_path=spooled.name
        )
    finally:
        os.unlink(spooled.name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{record_id}/identity", status_code=status.HTTP_204_NO_CONTENT)
async def identity_status(record_id: str, bridge: PaymentBridge = Depends(get_bridge)):
    """204 when verified; otherwise the identity error is mapped by the app."""
    await bridge.is_identity_verified(bridge.get_bank_account(record_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{record_id}/charges", response_model=RecordOut, status_code=status.HTTP_201_CREATED
)
async def charge_bank_account(
    record_id: str, body: ChargeCreate, bridge: PaymentBridge = Depends(get_bridge)
):
    payment = await bridge.charge_bank_account(
        bridge.get_bank_account(record_id), body.cents
    )
    return RecordOut(id=payment.get_id(), data=await payment.load())
