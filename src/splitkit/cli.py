"""Click CLI entrypoint for splitkit."""

import sys
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

import click

from . import __version__, ledger, templates
from .allocator import ParticipantLike, allocate, default_policy
from .config import configure_logging, get_default_currency
from .errors import IntegrityError, PaymentError, SplitError
from .models import (
    EqualSplit,
    ExactSplit,
    Group,
    Participant,
    PercentageSplit,
    SharesSplit,
    SplitMethod,
    SplitPolicy,
)
from .money import Money
from .query import ExpenseFilter, SortField, SortKey, expense_statistics, sort_expenses
from .service import record_transfer, suggest_settlement
from .settlement import settle_group
from .store import GroupStore

METHODS = [m.value for m in SplitMethod]
DATE = click.DateTime(formats=["%Y-%m-%d"])


def _parse_money(value: str, currency: str) -> Money:
    try:
        return Money.of(value, currency)
    except (InvalidOperation, ValueError) as e:
        raise click.BadParameter(f"'{value}' is not an amount") from e


def _parse_member(value: str) -> Participant:
    member_id, _, name = value.partition(":")
    return Participant(id=member_id.strip(), display_name=name.strip())


def _parse_params(values: tuple[str, ...]) -> dict[str, str]:
    params = {}
    for value in values:
        member_id, sep, raw = value.partition("=")
        if not sep:
            raise click.BadParameter(f"'{value}' should look like MEMBER=VALUE")
        params[member_id.strip()] = raw.strip()
    return params


def _build_policy(
    method: str, params: tuple[str, ...], participants: Sequence[ParticipantLike], currency: str
) -> SplitPolicy:
    """Turn --method/--param options into a split policy."""
    raw = _parse_params(params)
    split_method = SplitMethod(method)
    if split_method == SplitMethod.EQUAL:
        return EqualSplit()
    if not raw:
        if split_method == SplitMethod.EXACT:
            raise click.UsageError("An exact split needs --param MEMBER=AMOUNT for everyone")
        return default_policy(split_method, participants, currency)
    try:
        if split_method == SplitMethod.PERCENTAGE:
            return PercentageSplit(percentages={k: Decimal(v) for k, v in raw.items()})
        if split_method == SplitMethod.SHARES:
            return SharesSplit(weights={k: int(v) for k, v in raw.items()})
    except (InvalidOperation, ValueError) as e:
        raise click.BadParameter(f"Invalid {method} value: {e}") from e
    return ExactSplit(amounts={k: _parse_money(v, currency) for k, v in raw.items()})


def _fail(message: str) -> None:
    click.echo(message)
    sys.exit(1)


def _load_group(store: GroupStore, group_id: str) -> Group:
    group = store.get_group(group_id)
    if group is None:
        _fail(templates.ERROR_NO_GROUP.format(group_id=group_id))
    assert group is not None
    return group


@click.group()
@click.version_option(version=__version__)
@click.option("--state-dir", default=None, help="State directory (default: ~/.splitkit)")
@click.option("-v", "--verbose", is_flag=True, help="Log engine decisions to stderr")
@click.pass_context
def cli(ctx: click.Context, state_dir: str | None, verbose: bool) -> None:
    """splitkit - Shared expenses, exact splits and short settlement plans."""
    configure_logging("DEBUG" if verbose else None)
    ctx.obj = {"state_dir": state_dir}


def _store(ctx: click.Context) -> GroupStore:
    return GroupStore(ctx.obj["state_dir"])


@cli.command()
@click.argument("group_id")
@click.option("--name", default=None, help="Display name (default: the id)")
@click.option("--currency", default=None, help="Group currency (default: SPLITKIT_CURRENCY or USD)")
@click.option("--member", "members", multiple=True, help="Member as ID or ID:Name, repeatable")
@click.pass_context
def create(
    ctx: click.Context,
    group_id: str,
    name: str | None,
    currency: str | None,
    members: tuple[str, ...],
) -> None:
    """Create a group."""
    store = _store(ctx)
    try:
        group = store.create_group(
            group_id,
            name=name,
            currency=currency or get_default_currency(),
            members=[_parse_member(m) for m in members],
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    click.echo(
        templates.GROUP_CREATED.format(
            name=group.name, currency=group.currency, member_count=len(group.members)
        )
    )


@cli.command()
@click.pass_context
def groups(ctx: click.Context) -> None:
    """List all groups."""
    store = _store(ctx)
    group_ids = store.list_groups()

    if not group_ids:
        click.echo(templates.NO_GROUPS)
        return

    click.echo("Groups:")
    for group_id in group_ids:
        group = store.get_group(group_id)
        if group:
            click.echo(
                f"  • {group_id} ({group.currency}) - {len(group.members)} members, "
                f"{len(group.expenses)} expenses"
            )


@cli.command()
@click.argument("group_id")
@click.pass_context
def members(ctx: click.Context, group_id: str) -> None:
    """List the members of a group."""
    group = _load_group(_store(ctx), group_id)
    for member in group.members:
        click.echo(f"  • {member.id} ({member.display_name})")


@cli.command()
@click.argument("amount")
@click.argument("participants", nargs=-1, required=True)
@click.option("--currency", default=None, help="Currency (default: SPLITKIT_CURRENCY or USD)")
@click.option("--method", type=click.Choice(METHODS), default="equal", show_default=True)
@click.option("--param", "params", multiple=True, help="MEMBER=VALUE, repeatable")
def split(
    amount: str,
    participants: tuple[str, ...],
    currency: str | None,
    method: str,
    params: tuple[str, ...],
) -> None:
    """
    Preview how AMOUNT would be split among PARTICIPANTS.

    Nothing is saved.
    """
    ccy = currency or get_default_currency()
    total = _parse_money(amount, ccy)
    people = [_parse_member(p) for p in participants]
    policy = _build_policy(method, params, people, ccy)

    shares = allocate(total, policy, people)
    if isinstance(shares, SplitError):
        _fail(templates.format_failure(shares))
        return
    click.echo(
        templates.SPLIT_PREVIEW.format(
            amount_display=templates.format_money(total),
            method=method,
            shares=templates.format_shares(shares.values()),
        )
    )


@cli.command("add-expense")
@click.argument("group_id")
@click.argument("description")
@click.argument("amount")
@click.option("--payer", required=True, help="Member id of whoever paid")
@click.option("--with", "participants", multiple=True, help="Participant id (default: everyone)")
@click.option("--method", type=click.Choice(METHODS), default="equal", show_default=True)
@click.option("--param", "params", multiple=True, help="MEMBER=VALUE, repeatable")
@click.option("--date", "when", type=DATE, default=None, help="YYYY-MM-DD (default: today)")
@click.option("--notes", default="", help="Free-form notes")
@click.pass_context
def add_expense(
    ctx: click.Context,
    group_id: str,
    description: str,
    amount: str,
    payer: str,
    participants: tuple[str, ...],
    method: str,
    params: tuple[str, ...],
    when,
    notes: str,
) -> None:
    """Add an expense to a group."""
    store = _store(ctx)
    group = _load_group(store, group_id)

    total = _parse_money(amount, group.currency)
    people: list[ParticipantLike] = list(participants) or list(group.members)
    policy = _build_policy(method, params, people, group.currency)

    result = ledger.add_expense(
        group,
        description,
        payer,
        total,
        policy,
        participants=people,
        date=when.date() if when else None,
        notes=notes,
    )
    if isinstance(result, SplitError):
        _fail(templates.format_failure(result))
        return
    new_group, expense = result
    store.save_group(new_group)
    click.echo(
        templates.EXPENSE_ADDED.format(
            description=expense.description,
            amount_display=templates.format_money(expense.total),
            payer=expense.payer_name,
            shares=templates.format_shares(expense.shares),
        )
    )


@cli.command()
@click.argument("group_id")
@click.argument("payer")
@click.argument("recipient")
@click.argument("amount")
@click.option("--date", "when", type=DATE, default=None, help="YYYY-MM-DD (default: today)")
@click.option("--notes", default="", help="Free-form notes")
@click.pass_context
def pay(
    ctx: click.Context,
    group_id: str,
    payer: str,
    recipient: str,
    amount: str,
    when,
    notes: str,
) -> None:
    """Record that PAYER paid RECIPIENT an AMOUNT."""
    store = _store(ctx)
    group = _load_group(store, group_id)
    result = ledger.add_payment(
        group,
        payer,
        recipient,
        _parse_money(amount, group.currency),
        date=when.date() if when else None,
        notes=notes,
    )
    if isinstance(result, PaymentError):
        _fail(templates.format_failure(result))
        return
    new_group, payment = result
    store.save_group(new_group)
    click.echo(
        templates.PAYMENT_ADDED.format(
            payer=group.display_name(payment.payer_id),
            recipient=group.display_name(payment.recipient_id),
            amount_display=templates.format_money(payment.amount),
        )
    )


@cli.command()
@click.argument("group_id")
@click.pass_context
def balances(ctx: click.Context, group_id: str) -> None:
    """Show net balances for a group."""
    group = _load_group(_store(ctx), group_id)
    result = ledger.group_balances(group)
    if isinstance(result, IntegrityError):
        _fail(templates.format_failure(result))
        return
    click.echo(
        templates.BALANCES.format(
            name=group.name, balances=templates.format_balances(result, group.display_name)
        )
    )


@cli.command()
@click.argument("group_id")
@click.pass_context
def plan(ctx: click.Context, group_id: str) -> None:
    """Show the transfers that would settle a group."""
    group = _load_group(_store(ctx), group_id)
    transfers = settle_group(group)
    if isinstance(transfers, IntegrityError):
        _fail(templates.format_failure(transfers))
        return
    click.echo(
        templates.PLAN.format(
            name=group.name, transfers=templates.format_transfers(transfers, group.display_name)
        )
    )


@cli.command()
@click.argument("group_id")
@click.option("--yes", is_flag=True, help="Record without asking")
@click.pass_context
def settle(ctx: click.Context, group_id: str, yes: bool) -> None:
    """Record the settlement plan of a group as payments."""
    store = _store(ctx)
    group = _load_group(store, group_id)
    transfers = suggest_settlement(group_id, store, store, store, group.currency)
    if isinstance(transfers, IntegrityError):
        _fail(templates.format_failure(transfers))
        return
    click.echo(templates.format_transfers(transfers, group.display_name))
    if not transfers:
        return
    if not yes and not click.confirm("Record these payments?"):
        click.echo("Nothing recorded.")
        return

    for transfer in transfers:
        result = record_transfer(store, group_id, transfer)
        if isinstance(result, PaymentError):
            _fail(templates.format_failure(result))
    click.echo(templates.SETTLEMENT_RECORDED.format(count=len(transfers)))


def _parse_sort(value: str) -> SortKey:
    field, _, direction = value.partition(":")
    try:
        sort_field = SortField(field.strip().lower())
    except ValueError as e:
        raise click.BadParameter(f"Unknown sort field '{field}'") from e
    if direction not in ("", "asc", "desc"):
        raise click.BadParameter(f"Sort direction must be asc or desc, got '{direction}'")
    return SortKey(field=sort_field, ascending=direction == "asc")


@cli.command()
@click.argument("group_id")
@click.option("--search", default=None, help="Match description, amount or names")
@click.option("--since", type=DATE, default=None, help="First day, inclusive")
@click.option("--until", type=DATE, default=None, help="Last day, inclusive")
@click.option("--member", default=None, help="Only expenses involving this member id")
@click.option("--min", "min_amount", default=None, help="Smallest total")
@click.option("--max", "max_amount", default=None, help="Largest total")
@click.option(
    "--sort", "sort_keys", multiple=True, default=("date",), help="FIELD[:asc|desc], repeatable"
)
@click.option("--stats", is_flag=True, help="Print summary statistics")
@click.pass_context
def expenses(
    ctx: click.Context,
    group_id: str,
    search: str | None,
    since,
    until,
    member: str | None,
    min_amount: str | None,
    max_amount: str | None,
    sort_keys: tuple[str, ...],
    stats: bool,
) -> None:
    """Search, filter and sort the expenses of a group."""
    group = _load_group(_store(ctx), group_id)
    criteria = ExpenseFilter(
        query=search,
        start=since.date() if since else None,
        end=until.date() if until else None,
        member_id=member,
        min_amount=_parse_money(min_amount, group.currency) if min_amount else None,
        max_amount=_parse_money(max_amount, group.currency) if max_amount else None,
    )
    problem = criteria.check()
    if problem:
        _fail(templates.ERROR_VALIDATION.format(message=problem))

    found = sort_expenses(criteria.apply(group.expenses), [_parse_sort(s) for s in sort_keys])
    if not found:
        click.echo(templates.NO_EXPENSES if criteria.is_empty() else templates.NO_MATCHES)
        return

    for expense in found:
        click.echo(
            f"  • {expense.date} {expense.description}: "
            f"{templates.format_money(expense.total)} (paid by {expense.payer_name})"
        )
    if stats:
        click.echo("")
        click.echo(templates.format_statistics(expense_statistics(found)))


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
