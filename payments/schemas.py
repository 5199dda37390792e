"""
Processor Call Parameters

Typed parameter models for every call the bridge makes against the processor.
Optional fields default to None and are left out of the wire payload.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class StripeParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_stripe(self) -> dict[str, Any]:
        """Serialize to the keyword arguments the Stripe SDK expects."""
        return self.model_dump(exclude_none=True)


class AccountCreateParams(StripeParams):
    """Funds destination: a managed account holding the credit bank account."""

    country: str = Field(min_length=2, max_length=2)
    bank_account: str
    managed: bool = True
    email: str | None = None


class CustomerCreateParams(StripeParams):
    """Funds source: a customer charged through a bank account or a card."""

    bank_account: str | None = None
    card: str | None = None
    email: str | None = None


class ChargeCreateParams(StripeParams):
    amount: int = Field(gt=0)
    currency: str = "usd"
    customer: str
    description: str
    destination: str | None = None


class TransferCreateParams(StripeParams):
    amount: int = Field(gt=0)
    currency: str = "usd"
    destination: str = "default_for_currency"
    source_transaction: str | None = None


class FileCreateParams(BaseModel):
    path: str
    purpose: Literal["identity_document"] = "identity_document"
    stripe_account: str | None = None


class DateOfBirth(StripeParams):
    day: int = Field(ge=1, le=31)
    month: int = Field(ge=1, le=12)
    year: int


class Address(StripeParams):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class TosAcceptance(StripeParams):
    ip: str
    date: int  # unix timestamp


class VerificationDocument(StripeParams):
    document: str


class LegalEntity(StripeParams):
    first_name: str | None = None
    last_name: str | None = None
    dob: DateOfBirth | None = None
    type: Literal["individual", "company"] | None = None
    business_name: str | None = None
    ssn_last_4: str | None = None
    personal_id_number: str | None = None
    address: Address | None = None
    verification: VerificationDocument | None = None


class IdentityFields(BaseModel):
    """Legal-entity attributes submitted for identity verification.

    Presence of the fields the processor requires is the caller's
    responsibility; nothing here is mandatory.
    """

    model_config = ConfigDict(extra="forbid")

    first_name: str | None = None
    last_name: str | None = None
    dob: DateOfBirth | None = None
    type: Literal["individual", "company"] | None = None
    business_name: str | None = None
    ssn_last_4: str | None = None
    personal_id_number: str | None = None
    address: Address | None = None
    tos_acceptance: TosAcceptance | None = None

    def legal_entity(self) -> LegalEntity:
        return LegalEntity(**self.model_dump(exclude={"tos_acceptance"}))


class AccountUpdateParams(StripeParams):
    legal_entity: LegalEntity | None = None
    tos_acceptance: TosAcceptance | None = None
