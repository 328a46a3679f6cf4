"""
Rendering of transaction messages.

Layout of the HTML text, one item per line (blank lines are ignored when
the message is read back, see message_parsing):

    0  header
    1  💳 <b>description</b>
    2  MCC text
    3  <u>currency text</u>
    4  <code>Category: ...</code>
    5  <code>Payee:    ...</code>
    6  <pre>transaction id</pre>
"""
import html
from typing import Iterable, Optional
from monobudget.models.statement import StatementItem
from monobudget.models.telegram import InlineKeyboardButton, InlineKeyboardMarkup, RenderedMessage
from monobudget.models.transaction import Transaction
from monobudget.models.updates import PAYEE, UNAPPROVE, UNCATEGORIZE, UNKNOWN, encode_callback_data
from monobudget.utils.currency import format_amount

PRESSED_MARK = "✅"

BUTTON_WORDS = {
    UNCATEGORIZE: "❌ Uncategorize",
    UNAPPROVE: "🚫 Unapprove",
    UNKNOWN: "➡️ Unknown",
    PAYEE: "➡️ Payee",
}

KEYBOARD_ROWS = ((UNCATEGORIZE, UNAPPROVE), (UNKNOWN, PAYEE))


def _single_line(text: Optional[str], fallback: str) -> str:
    value = " ".join((text or "").split())
    return value or fallback


def format_header(alias: Optional[str]) -> str:
    if alias:
        return f"New transaction on {alias}'s account"
    return "New transaction"


def format_mcc(mcc: Optional[int]) -> str:
    return f"MCC {mcc:04d}" if mcc is not None else "MCC unknown"


def format_statement_message(
    header: str,
    description: str,
    mcc_text: str,
    currency_text: str,
    category: str,
    payee: str,
    transaction_id: str,
) -> str:
    """Build the HTML text of a transaction message."""
    e = html.escape
    return (
        f"{e(_single_line(header, 'New transaction'))}\n"
        f"💳 <b>{e(_single_line(description, 'Unknown'))}</b>\n"
        f"      {e(_single_line(mcc_text, 'MCC unknown'))}\n"
        f"      <u>{e(_single_line(currency_text, '-'))}</u>\n"
        f"      <code>Category: {e(category or '')}</code>\n"
        f"      <code>Payee:    {e(payee or '')}</code>\n"
        "\n\n"
        f"<pre>{e(transaction_id)}</pre>"
    )


def button_text(kind: str, pressed: bool) -> str:
    word = BUTTON_WORDS[kind]
    return f"{PRESSED_MARK}{word}" if pressed else word


def format_keyboard(pressed: Iterable[str], payee: str) -> InlineKeyboardMarkup:
    """
    Keyboard with every correction, marking the ones already applied.

    Args:
        pressed: Update kinds already applied to the message
        payee: Name offered by the payee button
    """
    pressed = set(pressed)
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=button_text(kind, kind in pressed),
                    callback_data=encode_callback_data(kind, payee),
                )
                for kind in row
            ]
            for row in KEYBOARD_ROWS
        ]
    )


def render_statement_message(
    item: StatementItem,
    transaction: Transaction,
    alias: Optional[str] = None,
) -> RenderedMessage:
    """First rendering of a freshly created transaction."""
    description = _single_line(item.description, "Unknown")
    text = format_statement_message(
        header=format_header(alias),
        description=description,
        mcc_text=format_mcc(item.mcc),
        currency_text=format_amount(item.amount, item.currency),
        category=transaction.category_name or "",
        payee=transaction.payee_name or "",
        transaction_id=transaction.id,
    )
    return RenderedMessage(text=text, keyboard=format_keyboard(set(), description))
