from fastapi import APIRouter, Depends, status

from api.dependencies import get_bridge, get_storage
from api.schemas import RecordOut, TransferCreate
from db.storage import PAYMENT, StorageService
from payments.bridge import PaymentBridge

router = APIRouter()


@router.post("/transfers", response_model=RecordOut, status_code=status.HTTP_201_CREATED)
async def create_transfer(body: TransferCreate, bridge: PaymentBridge = Depends(get_bridge)):
    if body.source_type == "credit_card":
        source = bridge.get_credit_card(body.source_id)
    else:
        source = bridge.get_bank_account(body.source_id)
    payment = await bridge.transfer(
        source,
        bridge.get_bank_account(body.destination_id),
        body.cents,
        description=body.description,
    )
    return RecordOut(id=payment.get_id(), data=await payment.load())


@router.get("/payments/{record_id}", response_model=RecordOut)
async def get_payment(record_id: str, storage: StorageService = Depends(get_storage)):
    record = storage.create_record(PAYMENT, record_id)
    return RecordOut(id=record.get_id(), data=await record.load())
