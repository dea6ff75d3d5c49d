"""Match controller for student transactions.

Uses a multi-stage approach:
1. Check-digit validation of the PEN on the transaction
2. PEN confirmation against the registry (following merges)
3. Demographic search with the scoring cascade
4. Status derivation and post-resolution consistency checks
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from penmatch import (
    MasterRecord,
    MatchResult,
    PenAlgorithm,
    PenStatus,
    TransactionRecord,
    normalize_local_id,
)
from penmatch.algorithms import MatchHistory, check_for_match, simple_check_for_match
from penmatch.check_digit import is_valid_pen
from penmatch.context import MatchContext
from penmatch.lookup import PenLookup
from penmatch.names import store_names_from_transaction
from penmatch.search import (
    find_candidates,
    plan_search,
    surname_frequencies,
    surname_search_sizes,
)

log = logging.getLogger(__name__)

# Update codes asking for a new PEN when nothing matched
NEW_PEN_UPDATE_CODES = frozenset({'Y', 'R'})

PEN_NOT_FOUND = 'NOT_FOUND'
PEN_ON_FILE = 'ON_FILE'
PEN_CONFIRMED = 'CONFIRMED'

NewPenHook = Callable[[TransactionRecord], None]


def no_new_pen(transaction: TransactionRecord) -> None:
    """Default new-PEN hook: issuing PENs happens elsewhere."""


@dataclass
class PenConfirmation:
    code: str = PEN_NOT_FOUND
    master: Optional[MasterRecord] = None
    merged_pen: Optional[str] = None
    algorithm: Optional[PenAlgorithm] = None


def initialize(
    transaction: TransactionRecord,
    lookup: PenLookup,
    history: Optional[MatchHistory] = None,
) -> MatchContext:
    """Create the context of a match operation."""
    context = MatchContext(transaction=transaction, history=history or MatchHistory())
    if transaction.local_id is not None:
        context.alternate_local_id = normalize_local_id(transaction.local_id)

    context.transaction_names = store_names_from_transaction(transaction, lookup)

    min_size, max_size = surname_search_sizes(transaction.surname)
    context.min_surname_search_size = min_size
    context.max_surname_search_size = max_size

    # A perfect match on a very rare surname earns extra points later
    full, partial = surname_frequencies(transaction.surname, min_size, lookup)
    context.full_surname_frequency = full
    context.partial_surname_frequency = partial
    return context


def confirm_pen(
    transaction: TransactionRecord,
    context: MatchContext,
    lookup: PenLookup,
) -> PenConfirmation:
    """Confirm that the PEN on the transaction belongs to this student.

    Merged PENs are followed to their true PEN. A deceased true PEN marks
    the operation as deceased.
    """
    confirmation = PenConfirmation()
    local_pen = transaction.pen
    master = lookup.lookup_student_by_pen(local_pen)
    result = None

    if master is not None:
        confirmation.code = PEN_ON_FILE
        confirmation.master = master
        if master.is_merged and master.true_pen:
            local_pen = master.true_pen
            confirmation.merged_pen = master.true_pen
            target = lookup.lookup_student_by_pen(local_pen)
            if target is not None:
                result = simple_check_for_match(transaction, target, context)
                if target.is_deceased:
                    log.info("Merged PEN %s points to deceased PEN %s",
                             master.pen, target.pen)
                    local_pen = None
                    context.deceased = True
        else:
            result = simple_check_for_match(transaction, master, context)

        if result is not None and result.match_found:
            confirmation.code = PEN_CONFIRMED
            confirmation.algorithm = result.algorithm

    context.local_pen = local_pen
    return confirmation


def _check_and_merge(
    records: Iterable[MasterRecord],
    transaction: TransactionRecord,
    context: MatchContext,
) -> None:
    for record in records:
        if (record.status is None or record.is_merged or record.is_deceased
                or record.pen == context.local_pen):
            continue
        result = check_for_match(transaction, record, context)
        if result.match_found:
            context.candidates.add(
                record.pen, result.algorithm, context.total_points,
                questionable=result.questionable,
            )


def find_matches_on_pen_demog(
    transaction: TransactionRecord,
    found_on_master: bool,
    context: MatchContext,
    lookup: PenLookup,
) -> None:
    """Find every registry student who could match the transaction.

    Appends the resolution tier (0, 1 or M) to the status family of the
    context and sets the resolved PEN when a single solid match remains.
    """
    plan = plan_search(transaction, context)
    records = find_candidates(plan, transaction, lookup)
    _check_and_merge(records, transaction, context)

    # The PEN given on the transaction is on file but its demographics
    # didn't confirm: keep it in the list of possible students
    if context.status == PenStatus.B and found_on_master and context.local_pen:
        context.really_good_matches = 0
        context.questionable = True
        context.candidates.add(context.local_pen, PenAlgorithm.ALG_00)

    # Only one really good match and no pretty good ones: send that PEN back
    if (context.status_family == PenStatus.D and context.really_good_matches == 1
            and context.pretty_good_matches == 0):
        context.pen = context.really_good_pen
        context.matching_pens = [context.really_good_pen]
        context.status = PenStatus.D1
        return

    context.matching_pens = context.candidates.labels()
    log.debug("List of matching PENs: %s", context.matching_pens)

    count = len(context.candidates)
    if count == 0:
        context.status += '0'
        context.pen = None
    elif count == 1:
        # A single questionable match is never resolved automatically
        if context.questionable or context.candidates[0].questionable:
            context.status = PenStatus.F1
            context.pen = None
        else:
            context.status += '1'
            context.pen = context.candidates[0].pen
    else:
        # Many matches are all questionable, even if some are solid
        context.status += 'M'
        context.pen = None


def is_possible_twin(transaction: TransactionRecord, master: MasterRecord) -> bool:
    """Same surname, birth date and school, different given name and local id."""
    return (
        transaction.surname is not None
        and transaction.surname == master.surname
        and transaction.given_name is not None and master.given is not None
        and transaction.given_name != master.given
        and transaction.dob == master.dob
        and transaction.mincode == master.mincode
        and transaction.local_id is not None and master.local_id is not None
        and transaction.local_id != master.local_id
    )


def check_resolved_match(
    transaction: TransactionRecord,
    context: MatchContext,
    lookup: PenLookup,
) -> None:
    """Reject a resolved PEN whose registry entry looks like someone else."""
    if context.pen is None:
        return
    master = lookup.lookup_student_by_pen(context.pen)
    if master is None:
        return

    if master.dob != transaction.dob:
        context.message = f"Birthdays are suspect: {master.dob} vs {transaction.dob}"
        context.status = PenStatus.F1
        context.pen = None

    if is_possible_twin(transaction, master):
        context.message = (
            f"Possible twin: {master.given.strip()} vs {transaction.given_name.strip()}"
        )
        context.status = PenStatus.F1
        context.pen = None


def match_student(
    transaction: TransactionRecord,
    lookup: PenLookup,
    history: Optional[MatchHistory] = None,
    assign_new_pen: NewPenHook = no_new_pen,
) -> MatchResult:
    """Confirm or find the PEN of one student transaction.

    Args:
        transaction: Incoming student record.
        lookup: Registry and reference tables.
        history: Observer notified of every confirmed match.
        assign_new_pen: Called for C0/D0 results whose update code asks
            for a new PEN.

    Returns:
        MatchResult with status, resolved PEN, ranked PENs and message.
    """
    log.debug("Received transaction: %s", transaction)
    context = initialize(transaction, lookup, history)
    found_on_master = False

    if transaction.pen is None:
        context.status = PenStatus.D
        find_matches_on_pen_demog(transaction, found_on_master, context, lookup)
    elif not is_valid_pen(transaction.pen):
        log.debug("Check digit error on PEN %s", transaction.pen)
        context.status = PenStatus.C
        find_matches_on_pen_demog(transaction, found_on_master, context, lookup)
    else:
        confirmation = confirm_pen(transaction, context, lookup)
        if confirmation.code == PEN_CONFIRMED:
            if confirmation.merged_pen is None:
                context.status = PenStatus.AA
                context.pen = confirmation.master.pen
            else:
                context.status = PenStatus.B1
                context.pen = confirmation.merged_pen
                context.candidates.add(confirmation.merged_pen, confirmation.algorithm)
                context.matching_pens = context.candidates.labels()
        elif confirmation.code == PEN_ON_FILE:
            context.status = PenStatus.B
            found_on_master = bool(confirmation.master.pen)
            find_matches_on_pen_demog(transaction, found_on_master, context, lookup)
        else:
            context.status = PenStatus.C
            find_matches_on_pen_demog(transaction, found_on_master, context, lookup)

    if (context.status in PenStatus.NEW_PEN
            and transaction.update_code in NEW_PEN_UPDATE_CODES):
        assign_new_pen(transaction)

    if context.status in PenStatus.RESOLVED:
        check_resolved_match(transaction, context, lookup)

    if context.deceased:
        context.status = PenStatus.C0
        context.pen = None

    log.info(
        "Transaction %s: status %s, PEN %s",
        transaction.pen or '-', context.status, context.pen or '-',
    )
    return MatchResult(
        transaction=transaction,
        status=context.status,
        pen=context.pen,
        matching_pens=list(context.matching_pens),
        message=context.message,
    )


def match_students(
    transactions: Iterable[TransactionRecord],
    lookup: PenLookup,
    history: Optional[MatchHistory] = None,
    assign_new_pen: NewPenHook = no_new_pen,
) -> list[MatchResult]:
    """Match every transaction independently against the registry."""
    results = [
        match_student(t, lookup, history, assign_new_pen) for t in transactions
    ]
    counts = Counter(r.status for r in results)
    log.info(
        "Matching finished: %d transactions processed (%s)",
        len(results),
        ', '.join(f'{status}={n}' for status, n in sorted(counts.items())),
    )
    return results
