"""
Reading a posted transaction message back.

Messages are the only record of what the user already did to a
transaction, so the fields needed to re-render one are recovered from the
message itself: plain-text lines at fixed positions (see the layout in
services/messages) plus the bold entity for the description. Any change to
the layout must keep these positions in sync.
"""
import html
import re
from typing import Optional, Set
from pydantic import BaseModel
from monobudget.exceptions import MessageParseError
from monobudget.models.telegram import InlineKeyboardMarkup, Message
from monobudget.models.updates import kind_of_callback_data
from monobudget.services.messages import PRESSED_MARK

LINE_HEADER = 0
LINE_MCC = 2
LINE_CURRENCY = 3
LINE_TRANSACTION_ID = 6

_HTML_TAG = re.compile(r"<.*?>")


class StatementMessageFields(BaseModel):
    """Fixed fields of a posted transaction message."""

    header: str
    description: str
    mcc_text: str
    currency_text: str
    transaction_id: str


def strip_html(text: str) -> str:
    """Plain text Telegram shows for an HTML message."""
    return html.unescape(_HTML_TAG.sub("", text))


def entity_text(text: str, offset: int, length: int) -> str:
    """Slice `text` by a Telegram entity range, which counts UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    return encoded[offset * 2:(offset + length) * 2].decode("utf-16-le")


def bold_text(message: Message) -> Optional[str]:
    if not message.text:
        return None
    for entity in message.entities:
        if entity.type == "bold":
            return entity_text(message.text, entity.offset, entity.length)
    return None


def parse_statement_message(message: Message) -> StatementMessageFields:
    """
    Extract the fixed fields of a transaction message.

    Raises:
        MessageParseError: If the message does not have the expected layout
    """
    if not message.text:
        raise MessageParseError(f"Message {message.message_id} has no text")

    lines = [line.strip() for line in message.text.split("\n") if line.strip()]
    if len(lines) <= LINE_TRANSACTION_ID:
        raise MessageParseError(
            f"Message {message.message_id} has {len(lines)} lines, expected at least {LINE_TRANSACTION_ID + 1}"
        )

    description = bold_text(message)
    if not description:
        raise MessageParseError(f"Message {message.message_id} has no bold description")

    return StatementMessageFields(
        header=lines[LINE_HEADER],
        description=description,
        mcc_text=lines[LINE_MCC],
        currency_text=lines[LINE_CURRENCY],
        transaction_id=lines[LINE_TRANSACTION_ID],
    )


def pressed_kinds(keyboard: Optional[InlineKeyboardMarkup]) -> Set[str]:
    """Update kinds whose buttons carry the pressed mark."""
    if keyboard is None:
        return set()
    pressed = set()
    for row in keyboard.inline_keyboard:
        for button in row:
            kind = kind_of_callback_data(button.callback_data)
            if kind is not None and PRESSED_MARK in button.text:
                pressed.add(kind)
    return pressed
