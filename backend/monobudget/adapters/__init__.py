from .base import BudgetBackend, ChatTransport, StatementSource
from .mock import MockBudgetBackend, MockChatTransport, MockStatementSource

__all__ = [
    "BudgetBackend",
    "ChatTransport",
    "StatementSource",
    "MockBudgetBackend",
    "MockChatTransport",
    "MockStatementSource",
]
