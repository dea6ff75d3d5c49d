"""Mutable state of a single match operation."""

from dataclasses import dataclass, field
from typing import Optional

from penmatch import (
    NameSet,
    TRANSACTION_ALTERNATE_LOCAL_ID,
    TransactionRecord,
)
from penmatch.algorithms import MatchHistory
from penmatch.ranking import CandidateList


@dataclass
class MatchContext:
    """Owned by exactly one match operation and discarded afterwards."""

    transaction: TransactionRecord
    transaction_names: NameSet = field(default_factory=NameSet)
    alternate_local_id: str = TRANSACTION_ALTERNATE_LOCAL_ID
    min_surname_search_size: int = 4
    max_surname_search_size: int = 6
    full_surname_frequency: int = 0
    partial_surname_frequency: int = 0
    master_names: Optional[NameSet] = None
    candidates: CandidateList = field(default_factory=CandidateList)
    really_good_matches: int = 0
    really_good_pen: Optional[str] = None
    pretty_good_matches: int = 0
    total_points: int = 0
    # PEN being confirmed; never re-added as a search candidate
    local_pen: Optional[str] = None
    status: str = ''
    pen: Optional[str] = None
    matching_pens: list[str] = field(default_factory=list)
    message: Optional[str] = None
    questionable: bool = False
    deceased: bool = False
    history: MatchHistory = field(default_factory=MatchHistory)

    @property
    def status_family(self) -> str:
        return self.status[:1]
