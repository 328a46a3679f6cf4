from .account import Account
from .statement import StatementItem
from .transaction import FlagColor, Transaction, TransactionSave, TransferCandidate
from .updates import (
    TransactionUpdateRequest,
    Uncategorize,
    Unapprove,
    MarkUnknownPayee,
    SetPayeeByName,
)
from .telegram import (
    CallbackQuery,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    Message,
    MessageEntity,
    MessageRef,
)
from .mono import MonoStatementItem, MonoWebhookPayload, MonoUserInfo

__all__ = [
    "Account",
    "StatementItem",
    "FlagColor",
    "Transaction",
    "TransactionSave",
    "TransferCandidate",
    "TransactionUpdateRequest",
    "Uncategorize",
    "Unapprove",
    "MarkUnknownPayee",
    "SetPayeeByName",
    "CallbackQuery",
    "InlineKeyboardButton",
    "InlineKeyboardMarkup",
    "Message",
    "MessageEntity",
    "MessageRef",
    "MonoStatementItem",
    "MonoWebhookPayload",
    "MonoUserInfo",
]
