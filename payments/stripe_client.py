"""
Stripe Processor Client

Implements the PaymentProcessor capabilities on top of the official Stripe SDK.
Bank account micro-deposit verification is not exposed by the SDK, so that one
call is made with a plain HTTP request against the same API.
"""

from collections.abc import Sequence
from typing import Any

import requests
import stripe
import structlog
import tenacity
from starlette.concurrency import run_in_threadpool

from core.settings import Settings
from payments.exceptions import ConfigurationError, ProcessorError, VerificationError
from payments.schemas import (
    AccountCreateParams,
    AccountUpdateParams,
    ChargeCreateParams,
    CustomerCreateParams,
    FileCreateParams,
    TransferCreateParams,
)

log = structlog.get_logger(__name__)

DEFAULT_API_BASE = "https://api.stripe.com"


def _wrap(exc: stripe.StripeError) -> ProcessorError:
    message = exc.user_message or str(exc)
    return ProcessorError(message, code=exc.code, http_status=exc.http_status)


class StripeClient:
    def __init__(self, secret_key: str, api_base: str = DEFAULT_API_BASE):
        if not secret_key:
            raise ConfigurationError("Secret key required")
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripeClient":
        return cls(settings.STRIPE_API_KEY, api_base=settings.STRIPE_API_BASE)

    def test_connection(self) -> bool:
        """Test the Stripe API connection."""
        try:
            stripe.Account.retrieve(api_key=self.secret_key)
            return True
        except Exception:
            return False

    async def _call(self, operation: str, fn, *args, **kwargs) -> Any:
        try:
            return await run_in_threadpool(
                fn, *args, api_key=self.secret_key, **kwargs
            )
        except stripe.StripeError as e:
            log.error(
                "stripe.call_failed",
                operation=operation,
                code=e.code,
                http_status=e.http_status,
                error=str(e),
            )
            raise _wrap(e) from e

    async def create_account(self, params: AccountCreateParams) -> Any:
        return await self._call(
            "accounts.create", stripe.Account.create, **params.to_stripe()
        )

    async def update_account(self, account_id: str, params: AccountUpdateParams) -> Any:
        return await self._call(
            "accounts.update",
            stripe.Account.modify,
            account_id,
            **params.to_stripe(),
        )

    @tenacity.retry(
        retry=tenacity.retry_if_exception(
            lambda e: isinstance(e.__cause__, stripe.APIConnectionError)
        ),
        stop=tenacity.stop_after_attempt(3),
        wait=tenacity.wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    async def retrieve_account(self, account_id: str) -> Any:
        # Reads are idempotent, so only this call is retried on connection loss
        return await self._call(
            "accounts.retrieve", stripe.Account.retrieve, account_id
        )

    async def create_customer(self, params: CustomerCreateParams) -> Any:
        return await self._call(
            "customers.create", stripe.Customer.create, **params.to_stripe()
        )

    async def create_charge(self, params: ChargeCreateParams) -> Any:
        return await self._call(
            "charges.create", stripe.Charge.create, **params.to_stripe()
        )

    async def create_transfer(
        self, params: TransferCreateParams, stripe_account: str | None = None
    ) -> Any:
        options = {"stripe_account": stripe_account} if stripe_account else {}
        return await self._call(
            "transfers.create",
            stripe.Transfer.create,
            **params.to_stripe(),
            **options,
        )

    async def create_file(self, params: FileCreateParams) -> Any:
        def _upload(**kwargs):
            with open(params.path, "rb") as fh:
                return stripe.File.create(file=fh, **kwargs)

        options = (
            {"stripe_account": params.stripe_account} if params.stripe_account else {}
        )
        return await self._call(
            "files.create", _upload, purpose=params.purpose, **options
        )

    def _verify_url(self, customer_id: str, bank_account_id: str) -> str:
        return (
            f"{self.api_base}/v1/customers/{customer_id}"
            f"/bank_accounts/{bank_account_id}/verify"
        )

    async def verify_bank_account(
        self, customer_id: str, bank_account_id: str, amounts: Sequence[int]
    ) -> None:
        """Confirm the two micro-deposit amounts for a customer's bank account.

        Raises VerificationError carrying the processor's ``error.message``
        for any response other than HTTP 200.
        """
        url = self._verify_url(customer_id, bank_account_id)
        try:
            r = await run_in_threadpool(
                requests.post,
                url,
                headers={"Authorization": f"Bearer {self.secret_key}"},
                data={"amounts[]": [int(a) for a in amounts]},
            )
        except requests.RequestException as e:
            log.error(
                "stripe.verify_request_failed",
                customer_id=customer_id,
                bank_account_id=bank_account_id,
                error=str(e),
            )
            raise VerificationError(f"Bank account verification failed: {e}") from e

        if r.status_code == 200:
            return None

        raise VerificationError(
            _error_message(r), http_status=r.status_code
        )


def _error_message(response: requests.Response) -> str:
    """Pull ``error.message`` out of a Stripe error body."""
    fallback = f"Bank account verification failed with HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return fallback
