from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
import time
import sys
import select

try:
    import termios
    import tty
except ImportError:  # Windows
    termios = None
    tty = None

STATUS_COLORS = {
    'success': 'green',
    'failed': 'red',
    'processing': 'orange3',
    'pending': 'bright_black',
}

TYPE_COLORS = {
    'transfer': 'blue',
    'approval': 'magenta',
    'deployment': 'gold1',
    'revoke': 'red',
}


class BaseUI:
    def __init__(self, console: Console = None):
        self.console = console or Console()

    def _read_key(self, timeout: float) -> str:
        """Return a lowercased key if one was pressed within timeout, else ''."""
        if sys.platform == "win32":
            import msvcrt
            if msvcrt.kbhit():
                return msvcrt.getch().decode().lower()
            time.sleep(timeout)
            return ''
        dr, _, _ = select.select([sys.stdin], [], [], timeout)
        if dr:
            return sys.stdin.read(1).lower()
        return ''

    def display_confirmation_prompt(self, seconds: int = 30) -> bool:
        """Display countdown timer with confirmation prompt."""
        def get_countdown_text(remaining: int) -> str:
            bar_length = 20
            filled = int((seconds - remaining) / seconds * bar_length)
            progress_bar = "█" * filled + "░" * (bar_length - filled)
            return self._get_confirmation_text(remaining, progress_bar)

        if not sys.stdin.isatty():
            self.console.print("[bold red]No interactive terminal - operation cancelled (use --yes to skip confirmation)[/]")
            return False

        start_time = time.time()

        old_settings = None
        if termios is not None:
            fd = sys.stdin.fileno()
            old_settings = termios.tcgetattr(fd)
            tty.setcbreak(fd)

        try:
            with Live(get_countdown_text(seconds), console=self.console, refresh_per_second=4) as live:
                while True:
                    elapsed = time.time() - start_time
                    if elapsed >= seconds:
                        self.console.print("\n[bold red]Time expired - Operation cancelled[/]\n")
                        return False

                    live.update(get_countdown_text(int(seconds - elapsed)))

                    key = self._read_key(0.1)
                    if key == 'y':
                        self.console.print("\n[bold green]Confirmed - Proceeding with operation[/]\n")
                        return True
                    elif key == 'n':
                        self.console.print("\n[bold red]Cancelled by user[/]\n")
                        return False
        finally:
            if old_settings is not None:
                termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, old_settings)

    def display_welcome(self):
        """Abstract method for welcome screen."""
        raise NotImplementedError

    def display_assumptions(self):
        """Display Know Your Assumptions (KYA) checklist."""
        assumptions = [
            ("🔐 Sender", "The source account must be unlocked on the node"),
            ("📊 Amounts", "Amounts are whole tokens; the service converts to wei"),
            ("⚡ Service", "The token service and chain node must be reachable"),
            ("⏱️ Pacing", "Transfers are sent one at a time with a pause between them"),
            ("🔁 Retries", "Failed transfers are reported, never retried"),
            ("📝 Records", "Successful transfers are added to the transaction history"),
        ]

        table = Table(
            show_header=True,
            header_style="bold yellow",
            border_style="bright_blue",
            title="[bold red]Pre-flight Checklist[/]"
        )
        table.add_column("⚠️ Check", style="cyan")
        table.add_column("📝 Description", style="bright_white")

        for check, desc in assumptions:
            table.add_row(check, desc)

        panel = Panel(
            table,
            title="[bold red]KNOW YOUR ASSUMPTIONS (KYA)[/]",
            border_style="red"
        )

        self.console.print("\n")
        self.console.print(panel)
        self.console.print("\n")

    def display_transfer_progress(self, position: int, total: int, recipient):
        raise NotImplementedError

    def display_transfer_outcome(self, position: int, total: int, outcome):
        raise NotImplementedError

    def display_error(self, message: str):
        """Display error message."""
        panel = Panel(
            f"[bold red]Error: {message}[/]",
            title="[bold red]Error[/]",
            border_style="red"
        )
        self.console.print("\n")
        self.console.print(panel)
        self.console.print("\n")

    def display_success(self, message: str, tx_hash: str = None):
        """Display success message."""
        body = f"[bold green]{message}[/]"
        if tx_hash:
            body += f"\n[bright_white]Transaction hash: [cyan]{tx_hash}[/]"
        panel = Panel(
            body,
            title="[bold green]Success[/]",
            border_style="green"
        )
        self.console.print("\n")
        self.console.print(panel)
        self.console.print("\n")

    def _get_confirmation_text(self, remaining: int, progress_bar: str) -> str:
        """Abstract method for confirmation text format."""
        raise NotImplementedError
