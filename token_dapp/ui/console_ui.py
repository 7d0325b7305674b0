from typing import Iterable, List, Optional

from rich.align import Align
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import BatchResult, HistoryEntry, Recipient, TransferOutcome, TOKEN_SYMBOL
from ..validate_address import shorten_address
from .base_ui import BaseUI, STATUS_COLORS, TYPE_COLORS


def _format_amount(amount: str) -> str:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return str(amount)
    return f"{value:,.4f}".rstrip('0').rstrip('.')


class ConsoleUI(BaseUI):
    def display_welcome(self):
        """Display welcome banner."""
        title = Text()
        title.append("🪙 TOKEN ", style="bold yellow")
        title.append("BULK ", style="bold blue")
        title.append("TRANSFER ", style="bold magenta")
        title.append("🪙", style="bold yellow")

        panel = Panel(
            Align.center(title),
            border_style="bright_blue",
            padding=(1, 2)
        )
        self.console.print(panel)

    def display_recipients(self, recipients: List[Recipient]):
        """Display the recipient list with per-row status."""
        table = Table(
            title=f"Recipients ({len(recipients)})",
            show_header=True,
            header_style="bold bright_magenta",
            border_style="bright_blue"
        )
        table.add_column("#", style="bright_black", justify="right")
        table.add_column("Address", style="cyan")
        table.add_column("Amount", style="green", justify="right")
        table.add_column("Status")

        if not recipients:
            table.add_row("", "[bright_black]No recipients added[/]", "", "")

        for position, recipient in enumerate(recipients, start=1):
            color = STATUS_COLORS.get(recipient.status, 'white')
            table.add_row(
                str(position),
                shorten_address(recipient.address),
                f"{_format_amount(recipient.amount)} {TOKEN_SYMBOL}",
                f"[{color}]{recipient.status.capitalize()}[/]"
            )
        self.console.print(table)

    def display_transfer_progress(self, position: int, total: int, recipient: Recipient):
        self.console.print(
            f"[bright_black][{position}/{total}][/] [orange3]Processing[/] "
            f"{_format_amount(recipient.amount)} {TOKEN_SYMBOL} → {shorten_address(recipient.address)}"
        )

    def display_transfer_outcome(self, position: int, total: int, outcome: TransferOutcome):
        color = STATUS_COLORS.get(outcome.status, 'white')
        self.console.print(
            f"[bright_black][{position}/{total}][/] [{color}]{outcome.message}[/] "
            f"{shorten_address(outcome.address)}"
        )

    def display_results(self, result: BatchResult):
        """Display per-recipient results and the aggregate tally."""
        table = Table(
            title="Transfer Results",
            show_header=True,
            header_style="bold bright_magenta",
            border_style="bright_blue"
        )
        table.add_column("Address", style="cyan")
        table.add_column("Amount", style="green", justify="right")
        table.add_column("Result")
        table.add_column("Hash", style="bright_black")

        for outcome in result.outcomes:
            color = STATUS_COLORS.get(outcome.status, 'white')
            table.add_row(
                shorten_address(outcome.address),
                _format_amount(outcome.amount),
                f"[{color}]{outcome.message}[/]",
                outcome.tx_hash or ''
            )

        border = "green" if result.failure_count == 0 else "yellow"
        summary = (
            f"[bold green]{result.success_count} success[/], "
            f"[bold red]{result.failure_count} failed[/] "
            f"of {result.total} transfers from [cyan]{result.source_address}[/]"
        )
        self.console.print(table)
        self.console.print(Panel(summary, title="[bold]Bulk transfer completed[/]", border_style=border))

    def display_history(self, entries: Iterable[HistoryEntry], shown: int, total: int):
        table = Table(
            title="Transaction History",
            show_header=True,
            header_style="bold bright_magenta",
            border_style="bright_blue"
        )
        table.add_column("Time", style="bright_white")
        table.add_column("Type")
        table.add_column("From", style="cyan")
        table.add_column("To", style="cyan")
        table.add_column("Amount", style="green", justify="right")
        table.add_column("Status")
        table.add_column("Hash", style="bright_black")

        for entry in entries:
            type_color = TYPE_COLORS.get(entry.type, 'white')
            status_color = STATUS_COLORS.get(entry.status, 'white')
            table.add_row(
                entry.timestamp or '',
                f"[{type_color}]{entry.type}[/]",
                shorten_address(entry.from_address, 8, 6),
                shorten_address(entry.to_address, 8, 6),
                _format_amount(entry.amount) if entry.amount is not None else '',
                f"[{status_color}]{entry.status}[/]",
                shorten_address(entry.hash, 10, 8) if entry.hash else ''
            )
        self.console.print(table)
        self.console.print(f"[bright_black]Showing {shown} of {total} transactions[/]")

    def display_balance(self, address: str, balance, symbol: Optional[str] = None):
        table = Table(show_header=False, border_style="bright_blue")
        table.add_column("Account", style="cyan")
        table.add_column("Balance", style="green")
        table.add_row(address, f"[bold bright_yellow]{balance:,} {symbol or TOKEN_SYMBOL}[/]")
        self.console.print(Panel(table, title="[bold yellow]Token Balance[/]", border_style="bright_blue"))

    def display_mapping(self, title: str, data: dict):
        table = Table(show_header=False, border_style="bright_blue")
        table.add_column("Field", style="cyan", justify="right")
        table.add_column("Value", style="bright_white")
        for key, value in data.items():
            table.add_row(str(key), str(value))
        self.console.print(Panel(table, title=f"[bold yellow]{title}[/]", border_style="bright_blue"))

    def _get_confirmation_text(self, remaining: int, progress_bar: str) -> str:
        return f"""
[bold yellow]⏳ Bulk transfer ready[/]
[bright_white]Time remaining: {remaining}s[/]
[blue]{progress_bar}[/]
[bold green]Press 'Y' to start sending[/]
[bold red]Press 'N' to cancel[/]
"""
