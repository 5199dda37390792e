"""
API Schemas Module

This module defines Pydantic models for request/response validation.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from payments.schemas import IdentityFields


class BankAccountCreate(BaseModel):
    country_code: str = Field(min_length=2, max_length=2)
    credit_token: str
    debit_token: str
    email: str | None = None


class CreditCardCreate(BaseModel):
    token: str
    email: str | None = None


class RecordOut(BaseModel):
    """A stored record: its id plus the stored document."""

    id: str
    data: dict[str, Any]


class MicroDeposits(BaseModel):
    amounts: list[int] = Field(min_length=2, max_length=2)


class IdentitySubmission(BaseModel):
    """Identity details only; documents go through the multipart upload route."""

    model_config = ConfigDict(extra="forbid")

    identity: IdentityFields


class ChargeCreate(BaseModel):
    cents: int = Field(gt=0)


class TransferCreate(BaseModel):
    source_id: str
    source_type: Literal["bank_account", "credit_card"] = "bank_account"
    destination_id: str
    cents: int = Field(gt=0)
    description: str | None = None
