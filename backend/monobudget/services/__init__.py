from .accounts import AccountDirectory
from .duplicates import DuplicateChecker
from .transfer_cache import TransferPayeeCache
from .transfer_detector import TransferDetector
from .callback_handler import CallbackHandler
from .pipeline import StatementPipeline

__all__ = [
    "AccountDirectory",
    "DuplicateChecker",
    "TransferPayeeCache",
    "TransferDetector",
    "CallbackHandler",
    "StatementPipeline",
]
