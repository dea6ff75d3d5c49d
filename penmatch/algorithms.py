"""Matching algorithms: the exact PEN confirmation check and the scoring cascade.

The cascade is an ordered tuple of rule objects. Each rule looks at the
scores of one candidate and either produces a RuleOutcome or passes; the
first rule producing an outcome wins.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from penmatch import MasterRecord, PenAlgorithm, TransactionRecord
from penmatch.names import store_names_from_master
from penmatch.scoring import (
    match_address,
    match_birthday,
    match_given_name,
    match_local_id,
    match_middle_name,
    match_sex,
    match_surname,
)
from penmatch.search import VERY_RARE

if TYPE_CHECKING:
    from penmatch.context import MatchContext

log = logging.getLogger(__name__)

# Local ids carrying this marker at characters 2-4 stand for "no local id"
NO_LOCAL_ID_MARKER = 'ZZZ'

# Reserved demerit term of the points rule; nothing assigns demerits yet
ID_DEMERITS = 0

SPECIAL_SEARCH_UPDATE_CODE = 'S'


class MatchHistory:
    """Observer notified of every confirmed match. Records nothing."""

    def record(
        self,
        transaction: TransactionRecord,
        master: MasterRecord,
        algorithm: PenAlgorithm,
    ) -> None:
        pass


@dataclass
class CheckForMatchResult:
    match_found: bool = False
    algorithm: Optional[PenAlgorithm] = None
    questionable: bool = False


@dataclass
class MatchScores:
    """Points of one candidate on every scoring dimension."""

    sex: int = 0
    birthday: int = 0
    surname: int = 0
    given: int = 0
    middle: int = 0
    local_id: int = 0
    address: int = 0

    @property
    def total(self) -> int:
        return (self.sex + self.birthday + self.surname + self.given
                + self.middle + self.local_id + self.address)


@dataclass
class RuleOutcome:
    algorithm: PenAlgorithm
    total_points: int
    really_good: bool = False
    pretty_good: bool = False
    questionable: bool = False


def has_no_local_id_marker(local_id: Optional[str]) -> bool:
    return local_id is not None and local_id[1:4] == NO_LOCAL_ID_MARKER


def score_candidate(
    transaction: TransactionRecord,
    master: MasterRecord,
    context: 'MatchContext',
) -> MatchScores:
    """Run all scorers for one candidate.

    Applies the very-rare surname bonus and the given/middle name flip
    correction on top of the raw scores.
    """
    context.master_names = store_names_from_master(master)

    surname = match_surname(transaction, master)
    if (surname.points >= 20 and surname.legal_surname_used
            and context.full_surname_frequency <= VERY_RARE):
        surname.points += 5

    birthday = match_birthday(transaction, master)
    given = match_given_name(context.transaction_names, context.master_names)
    middle = match_middle_name(context.transaction_names, context.master_names)

    # Given matches middle and middle matches given: probably flipped names
    if (given.given_name_flip and middle.middle_name_flip
            and (surname.points >= 10 or birthday >= 15)):
        given.points = 15
        middle.points = 15

    return MatchScores(
        sex=match_sex(transaction, master),
        birthday=birthday,
        surname=surname.points,
        given=given.points,
        middle=middle.points,
        local_id=match_local_id(transaction, master, context.alternate_local_id),
        address=match_address(transaction, master),
    )


class MatchRule:
    """One rule of the cascade."""

    algorithm: PenAlgorithm

    def evaluate(
        self, transaction: TransactionRecord, scores: MatchScores,
    ) -> Optional[RuleOutcome]:
        raise NotImplementedError


class SpecialSearchRule(MatchRule):
    """Search-only transactions: every populated field must score something."""

    algorithm = PenAlgorithm.ALG_SP

    def evaluate(
        self, transaction: TransactionRecord, scores: MatchScores,
    ) -> Optional[RuleOutcome]:
        if transaction.update_code != SPECIAL_SEARCH_UPDATE_CODE:
            return None
        t = transaction
        checks = [
            (t.sex, scores.sex),
            (t.surname or t.usual_surname, scores.surname),
            (t.given_name or t.usual_given_name, scores.given),
            (t.middle_name or t.usual_middle_name, scores.middle),
            (t.dob, scores.birthday),
            (t.local_id or t.mincode, scores.local_id),
            (t.postal, scores.address),
        ]
        if any(value and not points for value, points in checks):
            return None
        return RuleOutcome(self.algorithm, scores.total, questionable=True)


class SurnameBirthdayRule(MatchRule):
    """Sex + birthday + surname + 25 bonus points.

    School points other than a full local id or district match are left out
    of the bonus so that twins are weeded out.
    """

    algorithm = PenAlgorithm.ALG_20

    def evaluate(
        self, transaction: TransactionRecord, scores: MatchScores,
    ) -> Optional[RuleOutcome]:
        bonus = scores.given + scores.middle
        if scores.local_id in (5, 20):
            bonus += scores.local_id
        if (scores.sex >= 5 and scores.birthday >= 20 and scores.surname >= 20
                and bonus >= 25):
            total = scores.sex + scores.birthday + scores.surname + bonus
            return RuleOutcome(self.algorithm, total, really_good=True)
        return None


class SchoolSurnameRule(MatchRule):
    """School/local id + surname + 25 bonus points."""

    algorithm = PenAlgorithm.ALG_30

    def evaluate(
        self, transaction: TransactionRecord, scores: MatchScores,
    ) -> Optional[RuleOutcome]:
        if scores.local_id < 20 or scores.surname < 20:
            return None
        bonus = scores.sex + scores.given + scores.middle + scores.address
        if bonus < 25:
            return None
        total = scores.local_id + scores.surname + bonus
        return RuleOutcome(self.algorithm, total, really_good=True)


class SchoolBirthdayRule(MatchRule):
    """School/local id + sex + birthday + 20 bonus points."""

    algorithm = PenAlgorithm.ALG_40

    def evaluate(
        self, transaction: TransactionRecord, scores: MatchScores,
    ) -> Optional[RuleOutcome]:
        if scores.local_id < 20 or scores.sex < 5 or scores.birthday < 20:
            return None
        bonus = scores.surname + scores.given + scores.middle + scores.address
        if bonus < 20:
            return None
        total = scores.local_id + scores.sex + scores.birthday + bonus
        return RuleOutcome(self.algorithm, total, really_good=True)


class TotalPointsRule(MatchRule):
    """Sum of all points against several thresholds; always questionable."""

    algorithm = PenAlgorithm.ALG_50

    def evaluate(
        self, transaction: TransactionRecord, scores: MatchScores,
    ) -> Optional[RuleOutcome]:
        bonus = max(scores.total - ID_DEMERITS, 0)
        matched = (
            bonus >= 55
            or (bonus >= 40 and scores.local_id >= 20)
            or (bonus >= 50 and scores.surname >= 10 and scores.birthday >= 15
                and scores.given >= 15)
            or (bonus >= 50 and scores.birthday >= 20)
            or (bonus >= 50 and has_no_local_id_marker(transaction.local_id))
        )
        if not matched:
            return None
        really_good = bonus >= 70
        pretty_good = not really_good and (bonus >= 60 or scores.local_id >= 20)
        return RuleOutcome(
            self.algorithm, bonus,
            really_good=really_good, pretty_good=pretty_good, questionable=True,
        )


class NamesBirthdayRule(MatchRule):
    """Sex + partial birthday + surname + partial given name."""

    algorithm = PenAlgorithm.ALG_51

    def evaluate(
        self, transaction: TransactionRecord, scores: MatchScores,
    ) -> Optional[RuleOutcome]:
        if not (scores.sex == 5 and scores.birthday >= 10 and scores.surname >= 20
                and scores.given >= 10):
            return None
        # Better than questionable, but short of the 60 points of rule 50
        if scores.given >= 15 and scores.birthday >= 15:
            return RuleOutcome(self.algorithm, 55, pretty_good=True, questionable=True)
        return RuleOutcome(self.algorithm, 45, questionable=True)


MATCH_RULES: tuple[MatchRule, ...] = (
    SpecialSearchRule(),
    SurnameBirthdayRule(),
    SchoolSurnameRule(),
    SchoolBirthdayRule(),
    TotalPointsRule(),
    NamesBirthdayRule(),
)


def check_for_match(
    transaction: TransactionRecord,
    master: MasterRecord,
    context: 'MatchContext',
    rules: tuple[MatchRule, ...] = MATCH_RULES,
) -> CheckForMatchResult:
    """Score a candidate and run the rule cascade against it.

    The first matching rule updates the match counters and total points of
    the context and is reported back.

    Args:
        transaction: Incoming record.
        master: Registry candidate.
        context: Context of the running match operation.
        rules: Ordered rule cascade.

    Returns:
        CheckForMatchResult; match_found is False if no rule applies.
    """
    scores = score_candidate(transaction, master, context)
    log.debug("Scores for %s: %s", master.pen, scores)

    for rule in rules:
        outcome = rule.evaluate(transaction, scores)
        if outcome is None:
            continue

        context.total_points = outcome.total_points
        if outcome.really_good:
            context.really_good_matches += 1
            context.really_good_pen = master.pen
        elif outcome.pretty_good:
            context.pretty_good_matches += 1

        context.history.record(transaction, master, outcome.algorithm)
        log.debug(
            "Candidate %s matched by algorithm %s with %d points",
            master.pen, outcome.algorithm.value, outcome.total_points,
        )
        return CheckForMatchResult(True, outcome.algorithm, outcome.questionable)

    return CheckForMatchResult()


def _same(value: Optional[str], other: Optional[str]) -> bool:
    return value is not None and value == other


def simple_check_for_match(
    transaction: TransactionRecord,
    master: MasterRecord,
    context: 'MatchContext',
) -> CheckForMatchResult:
    """Exact match used to confirm a PEN supplied on the transaction.

    S1: surname, given name, birth date and sex all equal.
    S2: surname, given name and birth date equal, plus the same school and
    the same local id (or normalized local id).
    """
    t = transaction
    algorithm: Optional[PenAlgorithm] = None
    if _same(t.surname, master.surname) and _same(t.given_name, master.given) \
            and _same(t.dob, master.dob):
        if _same(t.sex, master.sex):
            algorithm = PenAlgorithm.ALG_S1
        elif (t.local_id is not None and len(t.local_id) > 1
              and _same(t.mincode, master.mincode)
              and (t.local_id == master.local_id
                   or context.alternate_local_id == master.alternate_local_id)):
            algorithm = PenAlgorithm.ALG_S2

    if algorithm is None:
        return CheckForMatchResult()
    context.history.record(transaction, master, algorithm)
    return CheckForMatchResult(True, algorithm)
