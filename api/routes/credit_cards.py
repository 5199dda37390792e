from fastapi import APIRouter, Depends, status

from api.dependencies import get_bridge
from api.schemas import ChargeCreate, CreditCardCreate, RecordOut
from payments.bridge import PaymentBridge

router = APIRouter()


@router.post("", response_model=RecordOut, status_code=status.HTTP_201_CREATED)
async def create_credit_card(
    body: CreditCardCreate, bridge: PaymentBridge = Depends(get_bridge)
):
    record = await bridge.create_credit_card(body.token, email=body.email)
    return RecordOut(id=record.get_id(), data=await record.load())


@router.get("/{record_id}", response_model=RecordOut)
async def get_credit_card(record_id: str, bridge: PaymentBridge = Depends(get_bridge)):
    record = bridge.get_credit_card(record_id)
    return RecordOut(id=record.get_id(), data=await record.load())


@router.post(
    "/{record_id}/charges", response_model=RecordOut, status_code=status.HTTP_201_CREATED
)
async def charge_credit_card(
    record_id: str, body: ChargeCreate, bridge: PaymentBridge = Depends(get_bridge)
):
    payment = await bridge.charge_credit_card(
        bridge.get_credit_card(record_id), body.cents
    )
    return RecordOut(id=payment.get_id(), data=await payment.load())
