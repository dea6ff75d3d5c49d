"""Core data types for the PEN matching engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Master record status values
STATUS_ACTIVE = 'A'
STATUS_MERGED = 'M'
STATUS_DECEASED = 'D'

# Placeholder alternate local ids; the two never compare equal
TRANSACTION_ALTERNATE_LOCAL_ID = 'TTT'
MASTER_ALTERNATE_LOCAL_ID = 'MMM'


class PenStatus:
    """Status codes reported back for a match operation."""

    AA = 'AA'   # PEN confirmed
    B = 'B'     # PEN on file, demographics differ
    B1 = 'B1'   # PEN confirmed through a merge
    C = 'C'     # PEN malformed or not on file
    C0 = 'C0'
    C1 = 'C1'
    D = 'D'     # no PEN supplied
    D0 = 'D0'
    D1 = 'D1'
    F1 = 'F1'   # one questionable match

    RESOLVED = frozenset({AA, B1, C1, D1})
    NEW_PEN = frozenset({C0, D0})


class PenAlgorithm(Enum):
    """Algorithm that produced a match."""

    ALG_S1 = 'S1'   # exact surname, given, birth date and sex
    ALG_S2 = 'S2'   # exact names and birth date plus school/local id
    ALG_SP = 'SP'   # special search
    ALG_00 = '00'   # PEN on file, demographics not confirmed
    ALG_20 = '20'
    ALG_30 = '30'
    ALG_40 = '40'
    ALG_50 = '50'
    ALG_51 = '51'


def normalize_local_id(local_id: str) -> str:
    """Strip leading zeros and all blanks from a local id."""
    return local_id.lstrip('0').replace(' ', '')


@dataclass
class TransactionRecord:
    """An incoming student record whose PEN is to be confirmed or found."""

    pen: Optional[str] = None
    surname: Optional[str] = None
    usual_surname: Optional[str] = None
    given_name: Optional[str] = None
    usual_given_name: Optional[str] = None
    middle_name: Optional[str] = None
    usual_middle_name: Optional[str] = None
    dob: Optional[str] = None       # YYYYMMDD
    sex: Optional[str] = None
    mincode: Optional[str] = None   # school code
    local_id: Optional[str] = None
    postal: Optional[str] = None
    update_code: Optional[str] = None  # Y, R, N, S


@dataclass
class MasterRecord:
    """A registry entry holding an issued PEN."""

    pen: str
    surname: Optional[str] = None
    given: Optional[str] = None
    middle: Optional[str] = None
    usual_surname: Optional[str] = None
    usual_given: Optional[str] = None
    usual_middle: Optional[str] = None
    dob: Optional[str] = None
    sex: Optional[str] = None
    mincode: Optional[str] = None
    local_id: Optional[str] = None
    postal: Optional[str] = None
    status: Optional[str] = STATUS_ACTIVE
    true_pen: Optional[str] = None  # merge target, set only when merged

    @property
    def alternate_local_id(self) -> str:
        if self.local_id is None:
            return MASTER_ALTERNATE_LOCAL_ID
        return normalize_local_id(self.local_id)

    @property
    def is_merged(self) -> bool:
        return self.status == STATUS_MERGED

    @property
    def is_deceased(self) -> bool:
        return self.status == STATUS_DECEASED


@dataclass
class NameSet:
    """All given/middle name variants of one record."""

    legal_given: Optional[str] = None
    legal_middle: Optional[str] = None
    usual_given: Optional[str] = None
    usual_middle: Optional[str] = None
    alternate_legal_given: Optional[str] = None
    alternate_legal_middle: Optional[str] = None
    alternate_usual_given: Optional[str] = None
    alternate_usual_middle: Optional[str] = None
    nicknames: set[str] = field(default_factory=set)

    def given_names(self) -> list[Optional[str]]:
        return [self.legal_given, self.usual_given,
                self.alternate_legal_given, self.alternate_usual_given]

    def middle_names(self) -> list[Optional[str]]:
        return [self.legal_middle, self.usual_middle,
                self.alternate_legal_middle, self.alternate_usual_middle]


@dataclass
class Candidate:
    """One entry of the ranked candidate list."""

    pen: str
    weight: int
    score: int
    questionable: bool = False

    @property
    def label(self) -> str:
        """PEN as reported back; questionable matches carry a '?' suffix."""
        return f'{self.pen}?' if self.questionable else self.pen


@dataclass
class MatchResult:
    """Final projection of one match operation."""

    transaction: TransactionRecord
    status: str
    pen: Optional[str]
    matching_pens: list[str] = field(default_factory=list)
    message: Optional[str] = None
