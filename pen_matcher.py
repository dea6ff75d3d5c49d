"""pen-match: CLI tool to confirm or find student PENs against a registry file."""

import argparse
import logging
from pathlib import Path

from penmatch import TransactionRecord
from penmatch.lookup import InMemoryPenLookup
from penmatch.matching import match_students
from penmatch.reader import read_master_records, read_nicknames, read_transactions
from penmatch.reporter import print_summary, write_csv_report, write_html_report


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Match student transactions against a PEN registry file.',
        prog='pen_matcher.py',
    )
    parser.add_argument(
        '--master', required=True, type=Path,
        help='Path to the registry (master) file',
    )
    parser.add_argument(
        '--transactions', required=True, type=Path,
        help='Path to the transaction file',
    )
    parser.add_argument(
        '--nicknames', type=Path,
        help='Path to a nickname table (Name/Nickname columns)',
    )
    parser.add_argument(
        '--output', required=True, type=Path,
        help='Path for the report output (CSV)',
    )
    parser.add_argument(
        '--delimiter', default='\t',
        help='Column delimiter of the input files (default: tab)',
    )
    parser.add_argument(
        '--html', action='store_true',
        help='Also write an HTML report',
    )
    parser.add_argument(
        '--summary', action='store_true',
        help='Print a summary to stdout',
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Log scoring details',
    )
    return parser


def log_new_pen_request(transaction: TransactionRecord) -> None:
    """New-PEN hook of the CLI: issuing is done by the registry owner."""
    logging.info(
        "New PEN required for %s, %s (%s)",
        transaction.surname, transaction.given_name, transaction.dob,
    )


def main() -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    nicknames = (
        read_nicknames(args.nicknames, args.delimiter) if args.nicknames else {}
    )
    lookup = InMemoryPenLookup(
        read_master_records(args.master, args.delimiter), nicknames,
    )
    transactions = read_transactions(args.transactions, args.delimiter)

    results = match_students(transactions, lookup, assign_new_pen=log_new_pen_request)

    write_csv_report(results, args.output)

    if args.html:
        html_path = args.output.with_suffix('.html')
        write_html_report(results, html_path, args.transactions.stem)

    if args.summary:
        print_summary(results, args.transactions.name)


if __name__ == '__main__':
    main()
