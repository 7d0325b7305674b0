import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .bulk_transfer import BulkTransferExecutor
from .config import AppConfig, load_config
from .models import TokenDappError, ValidationError, FILTER_ALL, HISTORY_TYPES, STATUS_SUCCESS, STATUS_FAILED
from .recipient_manager import RecipientManager
from .token_operations import TokenOperations
from .token_service import TokenServiceClient
from .transaction_history import JsonFileHistoryStore, TransactionHistory
from .ui.console_ui import ConsoleUI

logger = logging.getLogger(__name__)


class GracefulExit(Exception):
    """Exception for graceful exits"""
    pass


def signal_handler(signum, frame):
    """Handle interrupt signals"""
    raise GracefulExit("Received interrupt signal")


def setup_logging(verbose: bool, log_file: Optional[str] = None) -> None:
    """Configure logging with appropriate level and format."""
    level = logging.DEBUG if verbose else logging.INFO

    if verbose:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s')
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    # Set urllib3 and requests to WARNING level to reduce noise
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)

    if verbose:
        logger.debug("Debug logging enabled")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Bulk token transfers, approvals and transaction history.')
    parser.add_argument('--env-file', help='Path to an environment file with overrides')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--log-file', help='Also write logs to this file')
    subparsers = parser.add_subparsers(dest='command', required=True)

    bulk = subparsers.add_parser('bulk', help='Send tokens to many recipients, one at a time')
    bulk.add_argument('--source', help='Source address (defaults to SOURCE_ADDRESS)')
    bulk.add_argument('--file', help='Recipient file: CSV with address,amount columns or "address amount" lines')
    bulk.add_argument('--recipient', nargs=2, action='append', metavar=('ADDRESS', 'AMOUNT'),
                      default=[], help='Add one recipient (repeatable)')
    bulk.add_argument('--delay', type=float, help='Seconds between submissions (defaults to BULK_TRANSFER_DELAY)')
    bulk.add_argument('--record-failures', action='store_true', default=None,
                      help='Also record failed transfers in the history')
    bulk.add_argument('--dry-run', action='store_true', default=None, help='Show the batch without sending')
    bulk.add_argument('--yes', action='store_true', help='Skip the confirmation countdown')

    transfer = subparsers.add_parser('transfer', help='Send one token transfer')
    transfer.add_argument('from_address')
    transfer.add_argument('to_address')
    transfer.add_argument('amount')

    approve = subparsers.add_parser('approve', help='Approve a spender allowance')
    approve.add_argument('owner')
    approve.add_argument('spender')
    approve.add_argument('amount')

    revoke = subparsers.add_parser('revoke', help='Revoke a spender allowance')
    revoke.add_argument('owner')
    revoke.add_argument('spender')

    allowance = subparsers.add_parser('allowance', help='Check a spender allowance')
    allowance.add_argument('owner')
    allowance.add_argument('spender')

    balance = subparsers.add_parser('balance', help='Show token balances')
    balance.add_argument('addresses', nargs='+')

    subparsers.add_parser('token-info', help='Show token name, symbol and supply')
    subparsers.add_parser('deploy', help='Deploy the token contract')

    history = subparsers.add_parser('history', help='List, export or clear the transaction history')
    history.add_argument('action', choices=['list', 'export', 'clear'])
    history.add_argument('--search', default='', help='Match from/to/hash (case-insensitive)')
    history.add_argument('--status', default=FILTER_ALL, choices=[FILTER_ALL, STATUS_SUCCESS, STATUS_FAILED, 'pending'])
    history.add_argument('--type', default=FILTER_ALL, choices=(FILTER_ALL,) + HISTORY_TYPES)
    history.add_argument('--output-dir', help='Directory for JSON exports (defaults to EXPORT_DIR)')
    history.add_argument('--csv', help='Export as CSV to this path instead of JSON')

    return parser.parse_args(argv)


def load_recipients(manager: RecipientManager, args: argparse.Namespace) -> None:
    if args.file:
        path = Path(args.file)
        if path.suffix.lower() == '.csv':
            accepted = manager.load_csv(str(path))
        else:
            try:
                text = path.read_text(encoding='utf-8')
            except FileNotFoundError:
                raise
            except (OSError, UnicodeDecodeError) as e:
                raise ValidationError(f"Cannot read recipients from {path}: {e}") from e
            accepted = manager.parse_bulk_text(text)
        if not accepted:
            raise ValidationError(f"No valid recipients found in {path}")
    for address, amount in args.recipient:
        manager.add(address, amount)


def run_bulk(args: argparse.Namespace, config: AppConfig, ui: ConsoleUI,
             service: TokenServiceClient, history: TransactionHistory) -> int:
    manager = RecipientManager()
    load_recipients(manager, args)

    source = args.source or config.bulk.source_address
    dry_run = config.dry_run if args.dry_run is None else args.dry_run
    record_failures = config.bulk.record_failures if args.record_failures is None else args.record_failures
    delay = config.bulk.delay_seconds if args.delay is None else args.delay

    ui.display_welcome()
    ui.display_recipients(manager.recipients)

    if dry_run:
        logger.info("Dry run - no transfers will be sent")
        ui.console.print(f"[bold yellow]Dry run:[/] {len(manager)} transfers from {source or '(no source)'} would be sent")
        return 0

    if not args.yes:
        ui.display_assumptions()
        if not ui.display_confirmation_prompt(30):
            return 1

    executor = BulkTransferExecutor(
        service,
        history=history,
        delay_seconds=delay,
        record_failures=record_failures,
        ui=ui,
    )
    result = executor.execute_batch(source, manager)
    ui.display_results(result)
    return 0 if result.failure_count == 0 else 2


def run_history(args: argparse.Namespace, config: AppConfig, ui: ConsoleUI,
                history: TransactionHistory) -> int:
    filters = {'search_text': args.search, 'status_filter': args.status, 'type_filter': args.type}
    if args.action == 'list':
        shown, total = history.counts(**filters)
        ui.display_history(history.filter(**filters), shown, total)
    elif args.action == 'export':
        if args.csv:
            path = history.export_csv(args.csv, **filters)
        else:
            path = history.export_to_file(args.output_dir or config.history.export_dir, **filters)
        ui.display_success(f"Transaction history exported to {path}")
    elif args.action == 'clear':
        history.clear()
        ui.display_success("Transaction history cleared")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    ui = ConsoleUI()

    try:
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        config = load_config(args.env_file)
        setup_logging(args.debug or config.debug, args.log_file)

        service = TokenServiceClient(config.token_service.url, timeout=config.token_service.timeout)
        history = TransactionHistory(JsonFileHistoryStore(config.history.history_file))
        operations = TokenOperations(service, history)

        if args.command == 'bulk':
            return run_bulk(args, config, ui, service, history)
        if args.command == 'history':
            return run_history(args, config, ui, history)
        if args.command == 'transfer':
            tx_hash = operations.transfer(args.from_address, args.to_address, args.amount)
            ui.display_success("Transfer successful", tx_hash)
        elif args.command == 'approve':
            tx_hash = operations.approve(args.owner, args.spender, args.amount)
            ui.display_success("Token approval successful", tx_hash)
        elif args.command == 'revoke':
            tx_hash = operations.revoke(args.owner, args.spender)
            ui.display_success("Approval revoked successfully", tx_hash)
        elif args.command == 'allowance':
            check = operations.check_allowance(args.owner, args.spender)
            ui.display_mapping("Allowance", check.to_dict())
        elif args.command == 'balance':
            for address in args.addresses:
                ui.display_balance(address, operations.get_balance(address))
        elif args.command == 'token-info':
            ui.display_mapping("Token Info", operations.get_token_info())
        elif args.command == 'deploy':
            info = operations.deploy_contract()
            ui.display_success(f"Contract deployed at {info['address']}")
        return 0

    except GracefulExit as e:
        ui.console.print(f"\nGracefully exiting: {str(e)}")
        return 130
    except TokenDappError as e:
        logger.debug("Command failed", exc_info=True)
        ui.display_error(str(e))
        return 1
    except FileNotFoundError as e:
        ui.display_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
