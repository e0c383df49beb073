"""Format scanned amounts and tip calculations as display text."""

from tipscan.domain.bill import TipCalculation
from tipscan.domain.scan import ScannedBillAmounts


def format_amount(value: float) -> str:
    """Format a dollar amount like ``$1,234.50``."""
    return f"${value:,.2f}"


def format_percentage(percentage: float) -> str:
    """Whole percentages print without decimals (``18%``), others keep one."""
    if float(percentage).is_integer():
        return f"{int(percentage)}%"
    return f"{percentage:.1f}%"


def format_scanned_amounts(amounts: ScannedBillAmounts) -> str:
    """
    Build the confirmation message shown when a scan finds amounts.

    Example:
        Subtotal: $90.00
        Total: $101.70
        Gratuity (18%): $16.20
    """
    lines: list[str] = []
    if amounts.subtotal is not None:
        lines.append(f"Subtotal: ${amounts.subtotal:.2f}")
    if amounts.total is not None:
        lines.append(f"Total: ${amounts.total:.2f}")
    if amounts.gratuity is not None:
        # Whole percent, truncated, as printed on the receipt banner
        percent_text = f" ({int(amounts.gratuity.percentage)}%)" if amounts.gratuity.percentage is not None else ""
        lines.append(f"Gratuity{percent_text}: ${amounts.gratuity.amount:.2f}")
    return "\n".join(lines)


def _format_rows_aligned(rows: list[tuple[str, str]], indent: str = "") -> list[str]:
    """Left-align labels and right-align values in two columns."""
    if not rows:
        return []
    label_width = max(len(label) for label, _ in rows)
    value_width = max(len(value) for _, value in rows)
    return [f"{indent}{label.ljust(label_width)}  {value.rjust(value_width)}" for label, value in rows]


def format_tip_summary(calculation: TipCalculation) -> str:
    """Multi-line breakdown of a tip calculation for terminal output."""
    rows = [
        ("Bill", format_amount(calculation.bill_amount)),
        (f"Tip ({format_percentage(calculation.tip_percentage)})", format_amount(calculation.tip_amount)),
        ("Total", format_amount(calculation.total_amount)),
    ]
    if calculation.people > 1:
        rows.append((f"Per person ({calculation.people})", format_amount(calculation.amount_per_person)))
        rows.append(("Tip per person", format_amount(calculation.tip_per_person)))
    return "\n".join(_format_rows_aligned(rows))


def format_share_text(calculation: TipCalculation) -> str:
    """One-line summary suitable for sharing with the table."""
    text = (
        f"Bill: {format_amount(calculation.bill_amount)} | "
        f"Tip: {format_amount(calculation.tip_amount)} ({int(calculation.tip_percentage)}%) | "
        f"Total: {format_amount(calculation.total_amount)}"
    )
    if calculation.people > 1:
        text += f" | You owe: {format_amount(calculation.amount_per_person)}"
    return text
