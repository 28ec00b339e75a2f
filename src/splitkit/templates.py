"""Response text templates - all user-facing CLI text lives here.

Rendering is display-only: the engine hands over Money values and member ids,
these helpers turn them into lines of text.
"""

from collections.abc import Callable, Iterable, Mapping

from .errors import IntegrityError, PaymentError, SplitError
from .models import Balance, ExpenseShare, Transfer
from .money import Money
from .query import ExpenseStatistics

# Currency symbols for display
CURRENCY_SYMBOLS: dict[str, str] = {
    "ILS": "₪",
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "JPY": "¥",
    "VND": "₫",
}

NameLookup = Callable[[str], str]


def get_currency_symbol(currency_code: str) -> str:
    """Get display symbol for currency code."""
    return CURRENCY_SYMBOLS.get(currency_code.upper(), currency_code)


def format_money(amount: Money) -> str:
    """Format amount with currency symbol, sign first."""
    sign = "-" if amount.is_negative() else ""
    return f"{sign}{get_currency_symbol(amount.currency)}{abs(amount).amount}"


def _same(member_id: str) -> str:
    return member_id


def format_shares(shares: Iterable[ExpenseShare]) -> str:
    """Format computed shares, one per line."""
    return "\n".join(
        f"• {s.display_name}: {format_money(s.amount)} ({s.percentage}%)" for s in shares
    )


def format_balances(balances: Mapping[str, Balance], name: NameLookup = _same) -> str:
    """Format net balances, one per line."""
    lines = []
    for member_id, balance in balances.items():
        if balance.amount.is_positive():
            status = f"is owed {format_money(balance.amount)}"
        elif balance.amount.is_negative():
            status = f"owes {format_money(-balance.amount)}"
        else:
            status = "is settled up"
        lines.append(f"• {name(member_id)} {status}")
    return "\n".join(lines)


def format_transfers(transfers: Iterable[Transfer], name: NameLookup = _same) -> str:
    """Format list of transfers for display."""
    lines = [
        f"• {name(t.from_id)} → {name(t.to_id)}: {format_money(t.amount)}" for t in transfers
    ]
    if not lines:
        return ALL_SETTLED
    return "\n".join(lines)


def format_statistics(stats: ExpenseStatistics) -> str:
    """Format expense statistics as a short summary block."""
    if stats.count == 0:
        return NO_EXPENSES
    assert stats.total and stats.average and stats.minimum and stats.maximum
    return STATISTICS.format(
        count=stats.count,
        total=format_money(stats.total),
        average=format_money(stats.average),
        minimum=format_money(stats.minimum),
        maximum=format_money(stats.maximum),
        earliest=stats.earliest,
        latest=stats.latest,
        days=stats.span_days,
        participants=stats.participant_count,
    )


def format_failure(failure: SplitError | PaymentError | IntegrityError) -> str:
    """Turn a returned failure into a one-line message."""
    if isinstance(failure, IntegrityError):
        return ERROR_INTEGRITY.format(message=failure.message)
    return ERROR_VALIDATION.format(message=failure.message)


# === SUCCESS TEMPLATES ===

GROUP_CREATED = "🎉 Group *{name}* created ({currency}) with {member_count} member(s)"

EXPENSE_ADDED = "✅ *{description}* {amount_display} (paid by {payer})\n{shares}"

SPLIT_PREVIEW = "🧮 {amount_display} split {method}:\n{shares}"

PAYMENT_ADDED = "✅ {payer} → {recipient}: {amount_display} recorded"

SETTLEMENT_RECORDED = "✅ Recorded {count} settlement payment(s)"


# === READ TEMPLATES ===

BALANCES = "📊 *{name}* Balances\n\n{balances}"

PLAN = "💸 *{name}* Settlement plan\n\n{transfers}"

STATISTICS = (
    "📋 {count} expense(s), total {total}\n"
    "   average {average}, min {minimum}, max {maximum}\n"
    "   from {earliest} to {latest} ({days} days), {participants} participant(s)"
)

ALL_SETTLED = "✨ All settled up!"

NO_EXPENSES = "No expenses yet. Add your first expense to get started!"

NO_MATCHES = "No expenses match your search criteria. Try adjusting your filters."

NO_GROUPS = "No groups found."


# === ERROR TEMPLATES ===

ERROR_VALIDATION = "⚠️ {message}"

ERROR_INTEGRITY = "❌ Data problem: {message}"

ERROR_NO_GROUP = "⚠️ Group '{group_id}' not found."
