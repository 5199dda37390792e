from collections.abc import Sequence
from typing import Any, Protocol

from payments.schemas import (
    AccountCreateParams,
    AccountUpdateParams,
    ChargeCreateParams,
    CustomerCreateParams,
    FileCreateParams,
    TransferCreateParams,
)


class PaymentProcessor(Protocol):
    """Capabilities the bridge needs from a payment processor.

    Every call returns the processor's entity as a mapping carrying at least
    an ``id``. Failures raise ``ProcessorError`` (``VerificationError`` for
    bank account verification).
    """

    async def create_account(self, params: AccountCreateParams) -> Any: ...

    async def update_account(
        self, account_id: str, params: AccountUpdateParams
    ) -> Any: ...

    async def retrieve_account(self, account_id: str) -> Any: ...

    async def create_customer(self, params: CustomerCreateParams) -> Any: ...

    async def create_charge(self, params: ChargeCreateParams) -> Any: ...

    async def create_transfer(
        self, params: TransferCreateParams, stripe_account: str | None = None
    ) -> Any: ...

    async def create_file(self, params: FileCreateParams) -> Any: ...

    async def verify_bank_account(
        self, customer_id: str, bank_account_id: str, amounts: Sequence[int]
    ) -> None: ...
