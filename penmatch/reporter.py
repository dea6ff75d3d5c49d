"""Report generation for match results (CSV, HTML, summary)."""

import csv
import logging
from collections import Counter
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from penmatch import MatchResult, PenStatus

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / 'templates'

CSV_COLUMNS = [
    'Txn_PEN',
    'Txn_Surname',
    'Txn_GivenName',
    'Txn_MiddleName',
    'Txn_DOB',
    'Txn_Sex',
    'Txn_Mincode',
    'Txn_LocalID',
    'Txn_Postal',
    'Status',
    'PEN',
    'Matching_PENs',
    'Message',
]


def _result_to_row(result: MatchResult) -> dict:
    """Convert a MatchResult to a flat dict for CSV/HTML output."""
    t = result.transaction
    return {
        'Txn_PEN': t.pen or '',
        'Txn_Surname': t.surname or '',
        'Txn_GivenName': t.given_name or '',
        'Txn_MiddleName': t.middle_name or '',
        'Txn_DOB': t.dob or '',
        'Txn_Sex': t.sex or '',
        'Txn_Mincode': t.mincode or '',
        'Txn_LocalID': t.local_id or '',
        'Txn_Postal': t.postal or '',
        'Status': result.status,
        'PEN': result.pen or '',
        'Matching_PENs': ' '.join(result.matching_pens),
        'Message': result.message or '',
        # Resolution tier for row highlighting in HTML
        '_tier': _tier(result.status),
    }


def _tier(status: str) -> str:
    if status in PenStatus.RESOLVED:
        return 'resolved'
    if status.endswith('M') or status == PenStatus.F1:
        return 'review'
    return 'unmatched'


def write_csv_report(results: list[MatchResult], output_path: Path) -> None:
    """Write match results as a CSV report.

    Uses UTF-8 with BOM (utf-8-sig) and semicolon delimiter for
    compatibility with Excel.

    Args:
        results: List of match results.
        output_path: Path for the output CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.DictWriter(
            f, fieldnames=CSV_COLUMNS, delimiter=';', extrasaction='ignore',
        )
        writer.writeheader()
        for result in results:
            writer.writerow(_result_to_row(result))

    log.info("CSV report written: %s (%d rows)", output_path, len(results))


def write_html_report(
    results: list[MatchResult],
    output_path: Path,
    batch_name: str = '',
) -> None:
    """Write match results as an HTML report using Jinja2.

    Args:
        results: List of match results.
        output_path: Path for the output HTML file.
        batch_name: Name of the transaction file (for the report title).
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('report.html')

    rows = [_result_to_row(r) for r in results]
    stats = compute_stats(results)

    html = template.render(
        batch_name=batch_name,
        rows=rows,
        stats=stats,
        columns=CSV_COLUMNS,
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML report written: %s", output_path)


def compute_stats(results: list[MatchResult]) -> dict:
    """Compute summary statistics from match results."""
    by_status = Counter(r.status for r in results)
    return {
        'total': len(results),
        'confirmed': by_status[PenStatus.AA] + by_status[PenStatus.B1],
        'found': by_status[PenStatus.C1] + by_status[PenStatus.D1],
        'multiple': sum(n for s, n in by_status.items() if s.endswith('M')),
        'questionable': by_status[PenStatus.F1],
        'none': sum(n for s, n in by_status.items() if s.endswith('0')),
        'suspect': sum(1 for r in results if r.message),
        'by_status': dict(sorted(by_status.items())),
    }


def print_summary(results: list[MatchResult], batch_name: str = '') -> None:
    """Print a summary of match results to stdout.

    Args:
        results: List of match results.
        batch_name: Name of the transaction file.
    """
    stats = compute_stats(results)

    print(f"\n=== PEN match report: {batch_name} ===")
    print(f"Transactions:              {stats['total']:>5}")
    print(f"PEN confirmed (AA/B1):     {stats['confirmed']:>5}")
    print(f"PEN found (C1/D1):         {stats['found']:>5}")
    print(f"Multiple candidates:       {stats['multiple']:>5}")
    print(f"Questionable (F1):         {stats['questionable']:>5}")
    print(f"No match:                  {stats['none']:>5}")
    print("---")
    print(f"Suspect resolutions:       {stats['suspect']:>5}")
    for status, count in stats['by_status'].items():
        print(f"  - {status:<22} {count:>5}")
    print()
