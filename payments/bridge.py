"""
Payment Bridge

Translates banking operations (create, verify, charge, transfer) into calls
against a payment processor and persists the outcome as storage records:

- Bank accounts: a processor account (funds destination) and customer (funds
  source) sharing one bank account, verified through micro-deposits
- Credit cards: a processor customer charged through a card
- Payments: one record per successful charge or transfer
"""

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import structlog
from opentelemetry import trace

from core.logging import BusinessEvents
from core.metrics import record_charge, verifications_total
from core.settings import Settings
from db.storage import BANK_ACCOUNT, CREDIT_CARD, PAYMENT, StorageRecord
from payments.exceptions import (
    ConfigurationError,
    IdentityPendingError,
    IdentityStatusMissingError,
    IdentityUnverifiedError,
    UnverifiedBankAccountError,
    VerificationError,
)
from payments.processor import PaymentProcessor
from payments.schemas import (
    AccountCreateParams,
    AccountUpdateParams,
    ChargeCreateParams,
    CustomerCreateParams,
    FileCreateParams,
    IdentityFields,
    LegalEntity,
    TransferCreateParams,
    VerificationDocument,
)
from payments.stripe_client import StripeClient

log = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_DESCRIPTION = "Castle"
UNKNOWN_UNVERIFIED_REASON = "Identity could not be verified for an unknown reason"


def _lookup(obj: Any, *path: str) -> Any:
    """Walk nested processor entities, returning None at the first gap."""
    for key in path:
        if obj is None:
            return None
        try:
            obj = obj[key]
        except (KeyError, TypeError):
            obj = getattr(obj, key, None)
    return obj


def _check_cents(cents: int) -> None:
    if isinstance(cents, bool) or not isinstance(cents, int) or cents <= 0:
        raise ValueError(f"cents must be a positive integer, got {cents!r}")


class PaymentBridge:
    def __init__(
        self,
        processor: PaymentProcessor,
        storage,
        description: str = DEFAULT_DESCRIPTION,
        currency: str = "usd",
    ):
        if not processor:
            raise ConfigurationError("Payment processor required")
        if not storage:
            raise ConfigurationError("Storage service required")
        self.processor = processor
        self.storage = storage
        self.description = description
        self.currency = currency

    @classmethod
    def from_settings(cls, settings: Settings, storage) -> "PaymentBridge":
        return cls(
            StripeClient.from_settings(settings),
            storage,
            description=settings.STATEMENT_DESCRIPTOR,
            currency=settings.DEFAULT_CURRENCY,
        )

    # Records

    def get_bank_account(self, record_id: str) -> StorageRecord:
        return self.storage.create_record(BANK_ACCOUNT, record_id)

    def get_credit_card(self, record_id: str) -> StorageRecord:
        return self.storage.create_record(CREDIT_CARD, record_id)

    async def create_bank_account(
        self,
        country_code: str,
        credit_token: str,
        debit_token: str,
        email: str | None = None,
    ) -> StorageRecord:
        """Create the account/customer pair behind one bank account.

        Both processor calls run concurrently; the record is written only when
        both succeed. A remote entity created by the succeeding half of a
        failed pair is not rolled back, only logged.
        """
        account_params = AccountCreateParams(
            country=country_code, bank_account=credit_token, email=email
        )
        customer_params = CustomerCreateParams(bank_account=debit_token, email=email)

        account, customer = await asyncio.gather(
            self.processor.create_account(account_params),
            self.processor.create_customer(customer_params),
            return_exceptions=True,
        )
        failures = [r for r in (account, customer) if isinstance(r, BaseException)]
        if failures:
            for kind, entity in (("account", account), ("customer", customer)):
                if not isinstance(entity, BaseException):
                    log.warning(
                        BusinessEvents.BANK_ACCOUNT_ORPHANED,
                        entity=kind,
                        entity_id=_lookup(entity, "id"),
                        error=str(failures[0]),
                    )
            raise failures[0]

        bank_account = self.storage.create_record(BANK_ACCOUNT)
        await bank_account.update(
            {
                "_stripe": {
                    "customer_id": customer["id"],
                    "account_id": account["id"],
                    "bankAccount_id": _lookup(customer, "default_source"),
                }
            }
        )
        log.info(
            BusinessEvents.BANK_ACCOUNT_CREATED,
            record_id=bank_account.get_id(),
            customer_id=customer["id"],
            account_id=account["id"],
        )
        return bank_account

    async def create_credit_card(self, token: str, email: str | None = None) -> StorageRecord:
        customer = await self.processor.create_customer(
            CustomerCreateParams(card=token, email=email)
        )
        credit_card = self.storage.create_record(CREDIT_CARD)
        await credit_card.update(
            {
                "_stripe": {
                    "customer_id": customer["id"],
                    "creditCard_id": _lookup(customer, "default_source"),
                }
            }
        )
        log.info(
            BusinessEvents.CREDIT_CARD_CREATED,
            record_id=credit_card.get_id(),
            customer_id=customer["id"],
        )
        return credit_card

    # Verification

    async def verify_bank_account(
        self, bank_account: StorageRecord, amounts: Sequence[int]
    ) -> None:
        """Confirm micro-deposit amounts and mark the bank account verified."""
        if len(amounts) != 2:
            raise ValueError("Exactly two micro-deposit amounts are required")

        data = await bank_account.load()
        customer_id = data["_stripe"]["customer_id"]
        bank_account_id = data["_stripe"]["bankAccount_id"]

        try:
            await self.processor.verify_bank_account(
                customer_id, bank_account_id, amounts
            )
        except VerificationError as e:
            verifications_total.labels(kind="bank_account", outcome="failed").inc()
            log.warning(
                BusinessEvents.BANK_ACCOUNT_VERIFY_FAILED,
                record_id=bank_account.get_id(),
                http_status=e.http_status,
                error=e.message,
            )
            raise

        data["verifiedAt"] = datetime.now(UTC).isoformat()
        await bank_account.update(data)
        verifications_total.labels(kind="bank_account", outcome="verified").inc()
        log.info(BusinessEvents.BANK_ACCOUNT_VERIFIED, record_id=bank_account.get_id())

    async def verify_identity(
        self,
        bank_account: StorageRecord,
        identity: IdentityFields,
        image_path: str | None = None,
    ) -> None:
        """Submit legal-entity details, and optionally an identity document."""
        data = await bank_account.load()
        account_id = data["_stripe"]["account_id"]

        legal_entity = identity.legal_entity()
        await self.processor.update_account(
            account_id,
            AccountUpdateParams(
                legal_entity=legal_entity if legal_entity.to_stripe() else None,
                tos_acceptance=identity.tos_acceptance,
            ),
        )
        log.info(BusinessEvents.IDENTITY_SUBMITTED, account_id=account_id)

        if not image_path:
            return

        upload = await self.processor.create_file(
            FileCreateParams(path=image_path, stripe_account=account_id)
        )
        await self.processor.update_account(
            account_id,
            AccountUpdateParams(
                legal_entity=LegalEntity(
                    verification=VerificationDocument(document=upload["id"])
                )
            ),
        )
        log.info(
            BusinessEvents.IDENTITY_DOCUMENT_UPLOADED,
            account_id=account_id,
            file_id=upload["id"],
        )

    async def is_identity_verified(self, bank_account: StorageRecord) -> None:
        """Return None when verified, raise an IdentityVerificationError otherwise."""
        data = await bank_account.load()
        account_id = data["_stripe"]["account_id"]
        account = await self.processor.retrieve_account(account_id)

        verification = _lookup(account, "legal_entity", "verification")
        status = _lookup(verification, "status")
        log.info(BusinessEvents.IDENTITY_STATUS, account_id=account_id, status=status)
        verifications_total.labels(kind="identity", outcome=status or "missing").inc()

        if verification is None or status is None:
            raise IdentityStatusMissingError("Identity verification status missing")
        if status == "verified":
            return None
        if status == "pending":
            raise IdentityPendingError("Identity verification is pending")
        if status == "unverified":
            raise IdentityUnverifiedError(
                _lookup(verification, "details") or UNKNOWN_UNVERIFIED_REASON
            )
        raise IdentityStatusMissingError(
            f"Unexpected identity verification status: {status}"
        )

    # Charges

    async def _create_charge(
        self,
        customer_id: str,
        cents: int,
        account_id: str | None = None,
        description: str | None = None,
    ) -> Any:
        with tracer.start_as_current_span("bridge.create_charge") as span:
            span.set_attribute("payment.cents", cents)
            span.set_attribute("payment.routed", account_id is not None)

            log.info(
                BusinessEvents.PAYMENT_ATTEMPT,
                customer_id=customer_id,
                account_id=account_id,
                cents=cents,
            )
            try:
                charge = await self.processor.create_charge(
                    ChargeCreateParams(
                        amount=cents,
                        currency=self.currency,
                        customer=customer_id,
                        destination=account_id,
                        description=description or self.description,
                    )
                )
            except Exception as e:
                log.error(
                    BusinessEvents.PAYMENT_FAILURE,
                    customer_id=customer_id,
                    account_id=account_id,
                    cents=cents,
                    error=str(e),
                )
                raise

            log.info(
                BusinessEvents.PAYMENT_SUCCESS,
                customer_id=customer_id,
                account_id=account_id,
                cents=cents,
                charge_id=charge["id"],
            )
            return charge

    async def _transfer_charge(self, charge: Any, cents: int, account_id: str) -> Any:
        """Move a routed charge's funds out of the destination account."""
        with tracer.start_as_current_span("bridge.transfer_charge"):
            try:
                transfer = await self.processor.create_transfer(
                    TransferCreateParams(
                        amount=cents,
                        currency=self.currency,
                        source_transaction=charge["id"],
                    ),
                    stripe_account=account_id,
                )
            except Exception as e:
                # The charge has already gone through; keep it traceable
                log.error(
                    BusinessEvents.TRANSFER_FAILED,
                    charge_id=charge["id"],
                    account_id=account_id,
                    cents=cents,
                    error=str(e),
                )
                raise

            log.info(
                BusinessEvents.TRANSFER_CREATED,
                account_id=account_id,
                charge_id=charge["id"],
                transfer_id=transfer["id"],
            )
            return transfer

    async def charge_customer(
        self,
        customer_id: str,
        cents: int,
        account_id: str | None = None,
        description: str | None = None,
    ) -> Any:
        """Charge a customer, routing the funds to ``account_id`` when given.

        A routed charge is followed by a transfer out of the destination
        account, tied to the charge through ``source_transaction``.
        """
        _check_cents(cents)
        charge = await self._create_charge(
            customer_id, cents, account_id=account_id, description=description
        )
        if account_id:
            await self._transfer_charge(charge, cents, account_id)
        return charge

    async def _record_payment(
        self, cents: int, customer_id: str, charge: Any, account_id: str | None = None
    ) -> StorageRecord:
        stripe_ids = {"customer_id": customer_id, "charge_id": charge["id"]}
        if account_id:
            stripe_ids["account_id"] = account_id
        payment = self.storage.create_record(PAYMENT)
        await payment.update({"cents": cents, "_stripe": stripe_ids})
        return payment

    def _require_verified(self, bank_account: StorageRecord, data: dict) -> None:
        if data.get("verifiedAt"):
            return
        log.warning(
            BusinessEvents.PAYMENT_REJECTED,
            record_id=bank_account.get_id(),
            reason="unverified",
        )
        raise UnverifiedBankAccountError(
            "Bank accounts must be verified before they can be charged"
        )

    async def charge_bank_account(self, bank_account: StorageRecord, cents: int) -> StorageRecord:
        _check_cents(cents)
        data = await bank_account.load()
        self._require_verified(bank_account, data)

        customer_id = data["_stripe"]["customer_id"]
        charge = await self.charge_customer(customer_id, cents)
        payment = await self._record_payment(cents, customer_id, charge)
        record_charge("bank_account", cents)
        return payment

    async def charge_credit_card(self, credit_card: StorageRecord, cents: int) -> StorageRecord:
        _check_cents(cents)
        data = await credit_card.load()
        customer_id = data["_stripe"]["customer_id"]
        charge = await self.charge_customer(customer_id, cents)
        payment = await self._record_payment(cents, customer_id, charge)
        record_charge("credit_card", cents)
        return payment

    async def transfer(
        self,
        source: StorageRecord,
        destination: StorageRecord,
        cents: int,
        description: str | None = None,
    ) -> StorageRecord:
        """Charge the source's customer and route the funds to the destination's account.

        The Payment record is written as soon as the charge succeeds, so a
        failing transfer leg still leaves the charge on record.
        """
        _check_cents(cents)
        source_data = await source.load()
        if source.record_type == BANK_ACCOUNT:
            self._require_verified(source, source_data)
        customer_id = source_data["_stripe"]["customer_id"]
        account_id = (await destination.load())["_stripe"]["account_id"]

        charge = await self._create_charge(
            customer_id, cents, account_id=account_id, description=description
        )
        payment = await self._record_payment(
            cents, customer_id, charge, account_id=account_id
        )
        record_charge("transfer", cents)
        await self._transfer_charge(charge, cents, account_id)
        return payment
