"""
User-triggered transaction corrections.

Each request is one variant of a tagged union. The variant tag doubles as
the inline button payload, so it must stay short: Telegram allows at most
64 bytes of callback data.
"""
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field
from monobudget.exceptions import CallbackDecodeError
from monobudget.models.transaction import TransactionSave

UNCATEGORIZE = "uncat"
UNAPPROVE = "unappr"
UNKNOWN = "unknown"
PAYEE = "payee"

# Keyboard order
UPDATE_KINDS = (UNCATEGORIZE, UNAPPROVE, UNKNOWN, PAYEE)

CALLBACK_DATA_LIMIT = 64
PAYLOAD_SEPARATOR = "|"


class Uncategorize(BaseModel):
    """Clear category and payee so the budget treats the transaction as new."""

    kind: Literal["uncat"] = UNCATEGORIZE
    transaction_id: str = Field(..., min_length=1)

    class Config:
        frozen = True


class Unapprove(BaseModel):
    """Send the transaction back to the budget's approval queue."""

    kind: Literal["unappr"] = UNAPPROVE
    transaction_id: str = Field(..., min_length=1)

    class Config:
        frozen = True


class MarkUnknownPayee(BaseModel):
    """Move the transaction to the configured "unknown" payee and category."""

    kind: Literal["unknown"] = UNKNOWN
    transaction_id: str = Field(..., min_length=1)

    class Config:
        frozen = True


class SetPayeeByName(BaseModel):
    """Set the payee to a literal name, letting the budget match or create it."""

    kind: Literal["payee"] = PAYEE
    transaction_id: str = Field(..., min_length=1)
    payee: str = Field(..., min_length=1)

    class Config:
        frozen = True


TransactionUpdateRequest = Union[Uncategorize, Unapprove, MarkUnknownPayee, SetPayeeByName]


def apply_update(
    request: TransactionUpdateRequest,
    current: TransactionSave,
    unknown_payee_id: Optional[str],
    unknown_category_id: Optional[str],
) -> TransactionSave:
    """
    Derive the desired transaction state for a request.

    Args:
        request: The correction the user asked for
        current: Current state of the transaction
        unknown_payee_id: Payee used by MarkUnknownPayee
        unknown_category_id: Category used by MarkUnknownPayee

    Returns:
        New TransactionSave; `current` is left untouched
    """
    if isinstance(request, Uncategorize):
        return current.model_copy(update={"category_id": None, "payee_id": None, "payee_name": None})
    elif isinstance(request, Unapprove):
        return current.model_copy(update={"approved": False})
    elif isinstance(request, MarkUnknownPayee):
        return current.model_copy(update={
            "payee_id": unknown_payee_id or None,
            "category_id": unknown_category_id or None,
            "payee_name": None,
        })
    elif isinstance(request, SetPayeeByName):
        return current.model_copy(update={"payee_id": None, "payee_name": request.payee})
    raise TypeError(f"Unsupported update request: {request!r}")


def encode_callback_data(kind: str, payee: Optional[str] = None) -> str:
    """
    Encode a button payload.

    The payee name of the PAYEE variant is cut on a character boundary so
    the whole payload fits the callback data limit.
    """
    if kind not in UPDATE_KINDS:
        raise ValueError(f"Unknown update kind: {kind}")
    if kind != PAYEE:
        return kind

    prefix = f"{kind}{PAYLOAD_SEPARATOR}"
    budget = CALLBACK_DATA_LIMIT - len(prefix.encode("utf-8"))
    name = (payee or "").encode("utf-8")[:budget].decode("utf-8", errors="ignore")
    return prefix + name


def kind_of_callback_data(data: Optional[str]) -> Optional[str]:
    """Variant tag of a payload, or None when the payload is not ours."""
    if not data:
        return None
    tag = data.split(PAYLOAD_SEPARATOR, 1)[0]
    return tag if tag in UPDATE_KINDS else None


def decode_callback_data(data: str, transaction_id: str) -> TransactionUpdateRequest:
    """
    Turn a button payload into an update request for `transaction_id`.

    Raises:
        CallbackDecodeError: If the payload or the transaction id is unusable
    """
    kind = kind_of_callback_data(data)
    if kind is None:
        raise CallbackDecodeError(f"Unknown callback data: {data!r}")
    if not transaction_id:
        raise CallbackDecodeError("Missing transaction id")

    if kind == UNCATEGORIZE:
        return Uncategorize(transaction_id=transaction_id)
    elif kind == UNAPPROVE:
        return Unapprove(transaction_id=transaction_id)
    elif kind == UNKNOWN:
        return MarkUnknownPayee(transaction_id=transaction_id)

    payee = data.split(PAYLOAD_SEPARATOR, 1)[1].strip() if PAYLOAD_SEPARATOR in data else ""
    if not payee:
        raise CallbackDecodeError(f"Payee missing in callback data: {data!r}")
    return SetPayeeByName(transaction_id=transaction_id, payee=payee)
