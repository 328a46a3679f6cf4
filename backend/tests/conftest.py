"""Shared fixtures for monobudget tests."""
import re
from datetime import datetime, timezone
from typing import Optional

import pytest

from monobudget.models.account import Account
from monobudget.models.statement import StatementItem
from monobudget.models.telegram import Chat, InlineKeyboardMarkup, Message, MessageEntity
from monobudget.services.accounts import AccountDirectory
from monobudget.services.message_parsing import strip_html

CHAT_A = 1001
CHAT_B = 1002
IBAN_A = "UA213223130000026007233566001"
IBAN_B = "UA903052992990004149123456789"


@pytest.fixture
def account_a():
    return Account(
        id="acc-a",
        alias="Alice",
        currency="UAH",
        iban=IBAN_A,
        mono_token="token-a",
        budget_account_id="ynab-a",
        telegram_chat_id=CHAT_A,
    )


@pytest.fixture
def account_b():
    return Account(
        id="acc-b",
        alias="Bob",
        currency="UAH",
        iban=IBAN_B,
        mono_token="token-b",
        budget_account_id="ynab-b",
        telegram_chat_id=CHAT_B,
    )


@pytest.fixture
def accounts(account_a, account_b):
    return AccountDirectory([account_a, account_b])


def make_item(
    item_id: str = "s1",
    account_id: str = "acc-a",
    amount: int = -9500,
    description: str = "Coffee",
    counter_iban: Optional[str] = None,
    **kwargs,
) -> StatementItem:
    """Statement item with sensible defaults."""
    return StatementItem(
        id=item_id,
        account_id=account_id,
        time=kwargs.pop("time", datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)),
        amount=amount,
        currency=kwargs.pop("currency", "UAH"),
        description=description,
        counter_iban=counter_iban,
        **kwargs,
    )


def as_delivered(
    html_text: str,
    keyboard: Optional[InlineKeyboardMarkup] = None,
    chat_id: int = CHAT_A,
    message_id: int = 100,
) -> Message:
    """
    The Message Telegram hands back for an HTML text: tags removed and the
    bold span reported as an entity measured in UTF-16 code units.
    """
    entities = []
    match = re.search(r"<b>(.*?)</b>", html_text)
    if match:
        prefix = strip_html(html_text[:match.start()])
        bold = strip_html(match.group(1))
        entities.append(
            MessageEntity(
                type="bold",
                offset=len(prefix.encode("utf-16-le")) // 2,
                length=len(bold.encode("utf-16-le")) // 2,
            )
        )
    return Message(
        message_id=message_id,
        chat=Chat(id=chat_id),
        text=strip_html(html_text),
        entities=entities,
        reply_markup=keyboard,
    )
