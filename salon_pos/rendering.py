"""Rich text rendering for the queue, checkout and payment panes."""

from __future__ import annotations

from datetime import datetime

from rich.text import Text

from salon_pos.data import method_label, tech_initials
from salon_pos.models import CheckoutItem, CheckoutSplit, PaymentMethod, QueueEntry, QueueStatus, ServiceType
from salon_pos.money import format_cents
from salon_pos.payment import PaymentSession


def badge_style(status: QueueStatus) -> str:
    """Return a consistent badge style for queue status tags."""
    if status == QueueStatus.SERVING:
        return "bold #ffffff on #b23a48"
    return "bold #0b1f0f on #5fbf72"


def format_queue_row(entry: QueueEntry, service_types: list[ServiceType], is_next: bool = False) -> Text:
    """`3. [AL] Anna Le  turns 2  IDLE  Manicure Pedicure`."""
    names = {t.service_type_id: t.name for t in service_types}
    text = Text()
    text.append(f"{entry.order:>2}. ")
    text.append(f"[{tech_initials(entry.name)}] ", style="bold #1d4ed8")
    text.append(entry.name, style="bold" if is_next else "")
    text.append(f"  turns {entry.turns}  ")
    label = "BUSY" if entry.status == QueueStatus.SERVING else "IDLE"
    text.append(f" {label} ", style=badge_style(entry.status))
    skills = [names[type_id] for type_id in entry.skills_type_ids if type_id in names]
    if skills:
        text.append("  " + " ".join(skills), style="dim")
    if is_next:
        text.append("  ← next", style="bold #5fbf72")
    return text


def format_checkout_item(item: CheckoutItem) -> Text:
    """One technician block: name, amount, then service lines or the manual tag."""
    text = Text()
    text.append(item.tech_name, style="bold")
    text.append(f"  {format_cents(item.amount_cents)}")
    if item.manual_amount_cents is not None:
        text.append("\n      [manual amount]", style="dim")
    elif not item.services:
        text.append("\n      (no services yet)", style="#ffb3b3")
    for line in item.services:
        text.append(f"\n      {line.name}  {format_cents(line.price_cents)}", style="white")
    return text


def format_split(split: CheckoutSplit) -> Text:
    techs = len(split.items)
    created = datetime.fromisoformat(split.created_at).astimezone().strftime("%H:%M")
    text = Text()
    text.append(f"#{split.split_id} ", style="bold")
    text.append(f"{techs} tech{'s' if techs != 1 else ''} @ {created}  ")
    text.append(format_cents(split.total_cents), style="bold #60a5fa")
    return text


def format_payment_summary(session: PaymentSession) -> Text:
    """Totals block shown beside the tender keypad."""
    text = Text()
    text.append(f"Subtotal         {format_cents(session.subtotal)}\n")
    if session.discount_cents:
        text.append(f"Discount        -{format_cents(session.discount_cents)}\n")
    if session.cash_discount:
        text.append(f"Cash discount   -{format_cents(session.cash_discount)}\n", style="#5fbf72")
    elif session.selected_method == PaymentMethod.CASH:
        text.append(f"(cash saves {format_cents(session.potential_cash_discount)})\n", style="dim")
    text.append(f"Total            {format_cents(session.final_total)}\n", style="bold")
    for payment in session.payments:
        text.append(f"  {method_label(payment.method):<10}     {format_cents(payment.amount_cents)}\n")
    if session.remaining < 0:
        text.append(f"Change due       {format_cents(session.change_due)}", style="bold #5fbf72")
    else:
        text.append(f"Remaining        {format_cents(session.remaining)}", style="bold #ffb3b3")
        if session.adjusted_remaining != session.remaining:
            text.append(f"\n  in cash        {format_cents(session.adjusted_remaining)}", style="dim")
    return text
