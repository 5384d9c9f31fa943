"""Ledger Schemas — Pydantic request bodies for the ledger HTTP surface.

Invariants:
    - Required ids are non-empty after stripping
    - amount is an integer number of currency units; range rules live in LedgerStore
    - Field names on the wire are camelCase (fromUserId, kassaId, ...)

Design Decisions:
    - Presence/shape checked here (→ 400 via RequestValidationError), amount ranges
      checked by the store: one source of truth for the business limits
    - payment.amount gt=0 duplicated here so a zero amount fails before any lookup
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class TopupRequest(_Request):
    user_id: str = Field(alias="userId", min_length=1, max_length=128)
    amount: int


class TransferRequest(_Request):
    from_user_id: str = Field(alias="fromUserId", min_length=1, max_length=128)
    to_user_id: str = Field(alias="toUserId", min_length=1, max_length=128)
    amount: int
    description: str = Field("", max_length=500)


class PaymentRequest(_Request):
    from_user_id: str = Field(alias="fromUserId", min_length=1, max_length=128)
    store_name: str = Field(alias="storeName", min_length=1, max_length=200)
    amount: int = Field(gt=0)
    kassa_id: str = Field(alias="kassaId", min_length=1, max_length=128)

    @field_validator("store_name")
    @classmethod
    def collapse_store_name(cls, v: str) -> str:
        return " ".join(v.split())
