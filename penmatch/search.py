"""Search-space planning from surname frequency statistics.

Uncommon surname prefixes are searched with four characters only. Common
ones add the given initial, and very common surnames use up to six
surname characters plus two given-name characters.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from penmatch import MasterRecord, TransactionRecord
from penmatch.lookup import PenLookup

if TYPE_CHECKING:
    from penmatch.context import MatchContext

log = logging.getLogger(__name__)

VERY_FREQUENT = 500
NOT_VERY_FREQUENT = 50
VERY_RARE = 5

MIN_SURNAME_SEARCH_SIZE = 4
MAX_SURNAME_SEARCH_SIZE = 6


@dataclass(frozen=True)
class SearchPlan:
    """Pruned search key for the registry lookup."""

    surname_prefix: str
    given_initial: Optional[str] = None

    @property
    def use_given_initial(self) -> bool:
        return bool(self.given_initial)


def surname_search_sizes(surname: Optional[str]) -> tuple[int, int]:
    """Return (min, max) surname prefix lengths for a surname."""
    size = len(surname) if surname else 0
    min_size, max_size = MIN_SURNAME_SEARCH_SIZE, MAX_SURNAME_SEARCH_SIZE
    if size < min_size:
        min_size = size
    elif size < max_size:
        max_size = size
    return min_size, max_size


def surname_frequencies(
    surname: Optional[str],
    min_size: int,
    lookup: PenLookup,
) -> tuple[int, int]:
    """Look up the full and partial (prefix) surname frequency.

    A very frequent full surname is used as its own partial frequency;
    otherwise the prefix of `min_size` characters is looked up.
    """
    if not surname:
        return 0, 0
    full = lookup.lookup_surname_frequency(surname)
    if full > VERY_FREQUENT:
        return full, full
    return full, lookup.lookup_surname_frequency(surname[:min_size])


def plan_search(transaction: TransactionRecord, context: 'MatchContext') -> SearchPlan:
    """Derive the search key from the partial surname frequency.

    Args:
        transaction: Incoming record.
        context: Match context holding search sizes and frequencies.

    Returns:
        The SearchPlan to query the registry with.
    """
    surname = transaction.surname or ''
    given = transaction.given_name or ''
    frequency = context.partial_surname_frequency

    if frequency <= NOT_VERY_FREQUENT:
        plan = SearchPlan(surname[:context.min_surname_search_size])
    elif frequency <= VERY_FREQUENT:
        plan = SearchPlan(surname[:context.min_surname_search_size], given[:1] or None)
    else:
        plan = SearchPlan(surname[:context.max_surname_search_size], given[:2] or None)

    log.debug(
        "Search plan for frequency %d: surname=%r initial=%r",
        frequency, plan.surname_prefix, plan.given_initial,
    )
    return plan


def find_candidates(
    plan: SearchPlan,
    transaction: TransactionRecord,
    lookup: PenLookup,
) -> list[MasterRecord]:
    """Query the registry with one of the four lookup shapes."""
    dob = transaction.dob
    if transaction.local_id is None:
        if plan.use_given_initial:
            return lookup.lookup_no_local_id(dob, plan.surname_prefix, plan.given_initial)
        return lookup.lookup_no_init_no_local_id(dob, plan.surname_prefix)
    if plan.use_given_initial:
        return lookup.lookup_with_all_parts(
            dob, plan.surname_prefix, plan.given_initial,
            transaction.mincode, transaction.local_id,
        )
    return lookup.lookup_no_init(
        dob, plan.surname_prefix, transaction.mincode, transaction.local_id,
    )
