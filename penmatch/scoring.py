"""Point scoring of a transaction against a registry candidate.

Every scorer is a pure function of the transaction and the candidate and
returns points from a small closed range. Missing values never score.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from rapidfuzz.distance import Prefix

from penmatch import MasterRecord, NameSet, TransactionRecord

RURAL_POSTAL_PREFIX = 'V0'

# Characters compared for partial name matches
LONG_NAME_PREFIX = 10
SHORT_NAME_PREFIX = 4
DISTRICT_CODE_LENGTH = 3

_NAME_PARTS_RE = re.compile(r'[ -]+')


def clean_name(value: Optional[str]) -> Optional[str]:
    """Upper-case a name and strip blanks and separating dashes.

    Returns:
        The cleaned name, or None if nothing is left.
    """
    if value is None:
        return None
    cleaned = value.strip(' -').upper()
    return cleaned or None


def _cleaned(values: Iterable[Optional[str]]) -> list[str]:
    result: list[str] = []
    for value in values:
        cleaned = clean_name(value)
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result


def shares_prefix(a: str, b: str, length: int) -> bool:
    """True if both names are at least `length` long and start alike."""
    return (
        len(a) >= length and len(b) >= length
        and Prefix.similarity(a, b) >= length
    )


def _name_points(
    names: list[str],
    master_names: list[str],
    nicknames: frozenset[str] = frozenset(),
) -> int:
    if not names or not master_names:
        return 0
    pairs = [(a, b) for a in names for b in master_names]
    if any(a == b for a, b in pairs):
        return 20
    if any(shares_prefix(a, b, LONG_NAME_PREFIX) for a, b in pairs):
        return 15
    if any(shares_prefix(a, b, SHORT_NAME_PREFIX) for a, b in pairs):
        return 10
    if nicknames & set(master_names):
        return 10
    if any(a[0] == b[0] for a, b in pairs):
        return 5
    return 0


@dataclass
class SurnameMatch:
    points: int = 0
    legal_surname_used: bool = False


@dataclass
class GivenNameMatch:
    points: int = 0
    given_name_flip: bool = False


@dataclass
class MiddleNameMatch:
    points: int = 0
    middle_name_flip: bool = False


def match_sex(transaction: TransactionRecord, master: MasterRecord) -> int:
    """5 points for the same sex."""
    sex = clean_name(transaction.sex)
    return 5 if sex and sex == clean_name(master.sex) else 0


def match_birthday(transaction: TransactionRecord, master: MasterRecord) -> int:
    """Score birth dates given as YYYYMMDD.

    Returns:
        20 for the same date, 15 for the same year with day and month
        transposed, 10 when two of year/month/day agree, 5 when only the
        year agrees, 0 otherwise.
    """
    dob, master_dob = transaction.dob, master.dob
    if not dob or not master_dob or len(dob) != 8 or len(master_dob) != 8:
        return 0
    if dob == master_dob:
        return 20

    year, month, day = dob[:4], dob[4:6], dob[6:]
    m_year, m_month, m_day = master_dob[:4], master_dob[4:6], master_dob[6:]
    if year == m_year and month == m_day and day == m_month:
        return 15
    agreeing = (year == m_year) + (month == m_month) + (day == m_day)
    if agreeing == 2:
        return 10
    if year == m_year:
        return 5
    return 0


def _compound_surname_match(a: str, b: str) -> bool:
    return b in _NAME_PARTS_RE.split(a) or a in _NAME_PARTS_RE.split(b)


def match_surname(transaction: TransactionRecord, master: MasterRecord) -> SurnameMatch:
    """Score legal and usual surnames against the candidate's surnames.

    20 points for an exact match of any legal/usual pair (flagging when the
    legal surnames matched), 10 for a shared four-character prefix or a
    part of a compound surname.
    """
    legal = clean_name(transaction.surname)
    usual = clean_name(transaction.usual_surname)
    master_legal = clean_name(master.surname)
    master_usual = clean_name(master.usual_surname)

    if legal and legal == master_legal:
        return SurnameMatch(20, legal_surname_used=True)

    other_pairs = [(legal, master_usual), (usual, master_legal), (usual, master_usual)]
    if any(a and a == b for a, b in other_pairs):
        return SurnameMatch(20)

    for a, b in [(legal, master_legal)] + other_pairs:
        if a and b and (shares_prefix(a, b, SHORT_NAME_PREFIX)
                        or _compound_surname_match(a, b)):
            return SurnameMatch(10)
    return SurnameMatch()


def match_given_name(names: NameSet, master_names: NameSet) -> GivenNameMatch:
    """Score all given-name variants, including nicknames.

    If nothing scores but the legal given name equals the candidate's
    legal middle name, the names may have been flipped.
    """
    nicknames = frozenset(_cleaned(names.nicknames))
    points = _name_points(
        _cleaned(names.given_names()), _cleaned(master_names.given_names()), nicknames,
    )
    if points:
        return GivenNameMatch(points)

    given = clean_name(names.legal_given)
    flip = bool(given) and given == clean_name(master_names.legal_middle)
    return GivenNameMatch(0, given_name_flip=flip)


def match_middle_name(names: NameSet, master_names: NameSet) -> MiddleNameMatch:
    points = _name_points(
        _cleaned(names.middle_names()), _cleaned(master_names.middle_names()),
    )
    if points:
        return MiddleNameMatch(points)

    middle = clean_name(names.legal_middle)
    flip = bool(middle) and middle == clean_name(master_names.legal_given)
    return MiddleNameMatch(0, middle_name_flip=flip)


def match_local_id(
    transaction: TransactionRecord,
    master: MasterRecord,
    alternate_local_id: str,
) -> int:
    """Score school (mincode) and local id.

    Returns:
        20 for the same school and local id (or normalized local id),
        10 for the same school, 5 for the same district, 0 otherwise.
    """
    mincode = (transaction.mincode or '').strip()
    master_mincode = (master.mincode or '').strip()
    if not mincode or not master_mincode:
        return 0

    if mincode == master_mincode:
        local_id = (transaction.local_id or '').strip()
        if len(local_id) > 1 and local_id == (master.local_id or '').strip():
            return 20
        if alternate_local_id and alternate_local_id == master.alternate_local_id:
            return 20
        return 10

    if (len(mincode) >= DISTRICT_CODE_LENGTH
            and mincode[:DISTRICT_CODE_LENGTH] == master_mincode[:DISTRICT_CODE_LENGTH]):
        return 5
    return 0


def match_address(transaction: TransactionRecord, master: MasterRecord) -> int:
    """10 points for the same postal code, 1 if it is a rural code."""
    postal = (transaction.postal or '').replace(' ', '').upper()
    if not postal or postal != (master.postal or '').replace(' ', '').upper():
        return 0
    return 1 if postal.startswith(RURAL_POSTAL_PREFIX) else 10
