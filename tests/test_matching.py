"""Tests for penmatch.matching module."""

from dataclasses import replace

import pytest

from penmatch import PenAlgorithm, PenStatus
from penmatch.lookup import InMemoryPenLookup
from penmatch.matching import is_possible_twin, match_student, match_students
from tests.factories import make_master, make_transaction


class RecordingHistory:
    def __init__(self):
        self.algorithms = []

    def record(self, transaction, master, algorithm):
        self.algorithms.append(algorithm)


class RecordingHook:
    def __init__(self):
        self.transactions = []

    def __call__(self, transaction):
        self.transactions.append(transaction)


class RereadLookup(InMemoryPenLookup):
    """Returns a changed birth date once a PEN has been read before."""

    def __init__(self, records, changed_dob):
        super().__init__(records)
        self.changed_dob = changed_dob
        self.seen = set()

    def lookup_student_by_pen(self, pen):
        record = super().lookup_student_by_pen(pen)
        if record is not None and pen in self.seen:
            return replace(record, dob=self.changed_dob)
        self.seen.add(pen)
        return record


def _other_student(**kwargs):
    defaults = dict(surname='JONES', given='MARY', middle=None, dob='19990101', sex='F')
    defaults.update(kwargs)
    return make_master(**defaults)


class TestNoPenSupplied:
    """Tests for transactions without a PEN (status family D)."""

    def test_single_really_good_match(self, single_lookup):
        result = match_student(make_transaction(), single_lookup)
        assert result.status == PenStatus.D1
        assert result.pen == '123456782'
        assert result.matching_pens == ['123456782']
        assert result.message is None

    def test_no_match(self, empty_lookup):
        result = match_student(make_transaction(), empty_lookup)
        assert result.status == PenStatus.D0
        assert result.pen is None
        assert result.matching_pens == []

    def test_identical_masters(self):
        lookup = InMemoryPenLookup([make_master(), make_master(pen='444444442')])
        result = match_student(make_transaction(), lookup)
        assert result.status == 'DM'
        assert result.pen is None
        assert result.matching_pens == ['123456782', '444444442']

    def test_merged_and_deceased_candidates_skipped(self):
        lookup = InMemoryPenLookup([
            make_master(status='M', true_pen='444444442'),
            make_master(pen='111111118', status='D'),
        ])
        result = match_student(make_transaction(), lookup)
        assert result.status == PenStatus.D0

    def test_special_search(self):
        lookup = InMemoryPenLookup([make_master(postal='V8W1A1')])
        t = make_transaction(update_code='S', mincode=None, local_id=None)
        result = match_student(t, lookup)
        assert result.status == PenStatus.F1
        assert result.pen is None
        assert result.matching_pens == ['123456782?']

    def test_single_questionable_match_not_resolved(self):
        # 5 + 20 + 25 = 50 points with an exact birth date: rule 50 only
        lookup = InMemoryPenLookup([make_master(given='XAVIER', middle=None)])
        result = match_student(make_transaction(), lookup)
        assert result.status == PenStatus.F1
        assert result.pen is None
        assert result.matching_pens == ['123456782?']

    def test_really_good_and_pretty_good_match(self):
        lookup = InMemoryPenLookup([
            make_master(),
            # 5 + 15 + 25 + 20 = 65 points: pretty good
            make_master(pen='444444442', middle=None, dob='20051206'),
        ])
        result = match_student(make_transaction(), lookup)
        assert result.status == 'DM'
        assert result.pen is None
        assert result.matching_pens == ['123456782', '444444442?']

    def test_really_good_and_questionable_match(self):
        lookup = InMemoryPenLookup([
            make_master(),
            # 5 + 5 + 25 + 20 = 55 points: neither really nor pretty good
            make_master(pen='444444442', middle=None, dob='20051101'),
        ])
        result = match_student(make_transaction(), lookup)
        assert result.status == PenStatus.D1
        assert result.pen == '123456782'
        assert result.matching_pens == ['123456782']

    def test_registry_row_without_status_skipped(self):
        lookup = InMemoryPenLookup([make_master(status=None)])
        result = match_student(make_transaction(), lookup)
        assert result.status == PenStatus.D0

    def test_nickname_match(self):
        lookup = InMemoryPenLookup([make_master(given='ROBERT')], {'ROBERT': {'BOB'}})
        history = RecordingHistory()
        result = match_student(make_transaction(given_name='BOB'), lookup, history)
        assert result.status == PenStatus.D1
        assert history.algorithms == [PenAlgorithm.ALG_20]

    def test_without_nickname_falls_back_to_points(self):
        lookup = InMemoryPenLookup([make_master(given='ROBERT')])
        history = RecordingHistory()
        # 70 points make it a really good match despite the questionable rule
        result = match_student(make_transaction(given_name='BOB'), lookup, history)
        assert history.algorithms == [PenAlgorithm.ALG_50]
        assert result.status == PenStatus.D1
        assert result.pen == '123456782'


class TestPenConfirmation:
    """Tests for transactions carrying a well-formed PEN."""

    def test_confirmed(self):
        lookup = InMemoryPenLookup([make_master(pen='746282656')])
        result = match_student(make_transaction(pen='746282656'), lookup)
        assert result.status == PenStatus.AA
        assert result.pen == '746282656'
        assert result.matching_pens == []

    def test_confirmed_through_merge(self):
        lookup = InMemoryPenLookup([
            _other_student(pen='222222226', status='M', true_pen='333333334'),
            make_master(pen='333333334'),
        ])
        result = match_student(make_transaction(pen='222222226'), lookup)
        assert result.status == PenStatus.B1
        assert result.pen == '333333334'
        assert result.matching_pens == ['333333334']

    def test_merged_into_deceased(self):
        lookup = InMemoryPenLookup([
            _other_student(pen='222222226', status='M', true_pen='333333334'),
            make_master(pen='333333334', status='D'),
        ])
        result = match_student(make_transaction(pen='222222226'), lookup)
        assert result.status == PenStatus.C0
        assert result.pen is None

    def test_on_file_without_other_matches(self):
        lookup = InMemoryPenLookup([_other_student(pen='746282656')])
        result = match_student(make_transaction(pen='746282656'), lookup)
        assert result.status == PenStatus.F1
        assert result.pen is None
        assert result.matching_pens == ['746282656']

    def test_on_file_with_other_match(self):
        lookup = InMemoryPenLookup([_other_student(pen='746282656'), make_master()])
        result = match_student(make_transaction(pen='746282656'), lookup)
        assert result.status == 'BM'
        assert result.pen is None
        assert result.matching_pens == ['746282656', '123456782']

    def test_merged_pen_not_confirmed_keeps_true_pen(self):
        lookup = InMemoryPenLookup([
            _other_student(pen='222222226', status='M', true_pen='333333334'),
            _other_student(pen='333333334'),
        ])
        result = match_student(make_transaction(pen='222222226'), lookup)
        assert result.status == PenStatus.F1
        assert result.matching_pens == ['333333334']

    def test_pen_not_on_file(self, single_lookup):
        result = match_student(make_transaction(pen='555555556'), single_lookup)
        assert result.status == PenStatus.C1
        assert result.pen == '123456782'

    def test_pen_not_on_file_does_not_short_circuit(self):
        lookup = InMemoryPenLookup([
            make_master(),
            make_master(pen='444444442', middle=None, dob='20051101'),
        ])
        result = match_student(make_transaction(pen='555555556'), lookup)
        assert result.status == 'CM'
        assert result.pen is None
        assert result.matching_pens == ['123456782', '444444442?']

    def test_malformed_pen(self, single_lookup):
        result = match_student(make_transaction(pen='123456789'), single_lookup)
        assert result.status == PenStatus.C1
        assert result.pen == '123456782'

    def test_history_sees_confirmation(self):
        lookup = InMemoryPenLookup([make_master(pen='746282656')])
        history = RecordingHistory()
        match_student(make_transaction(pen='746282656'), lookup, history)
        assert history.algorithms == [PenAlgorithm.ALG_S1]


class TestNewPenHook:
    """Tests for the new-PEN hook of unmatched transactions."""

    @pytest.mark.parametrize('update_code, called', [
        ('Y', True), ('R', True), ('N', False), ('S', False),
    ])
    def test_no_match(self, empty_lookup, update_code, called):
        hook = RecordingHook()
        t = make_transaction(update_code=update_code)
        result = match_student(t, empty_lookup, assign_new_pen=hook)
        assert result.status == PenStatus.D0
        assert hook.transactions == ([t] if called else [])

    def test_malformed_pen_without_match(self, empty_lookup):
        hook = RecordingHook()
        t = make_transaction(pen='123456789', update_code='R')
        result = match_student(t, empty_lookup, assign_new_pen=hook)
        assert result.status == PenStatus.C0
        assert hook.transactions == [t]

    def test_not_called_for_match(self, single_lookup):
        hook = RecordingHook()
        match_student(make_transaction(update_code='Y'), single_lookup, assign_new_pen=hook)
        assert hook.transactions == []


class TestResolvedMatchChecks:
    """Tests for the birthday and twin checks on resolved PENs."""

    def test_suspect_birthday(self):
        lookup = InMemoryPenLookup([
            make_master(dob='20070101', mincode='12345678', local_id='A1001'),
        ])
        result = match_student(make_transaction(), lookup)
        assert result.status == PenStatus.F1
        assert result.pen is None
        assert result.message == 'Birthdays are suspect: 20070101 vs 20050612'

    def test_birthday_changed_after_confirmation(self):
        lookup = RereadLookup([make_master(pen='746282656')], changed_dob='20070101')
        result = match_student(make_transaction(pen='746282656'), lookup)
        assert result.status == PenStatus.F1
        assert result.message == 'Birthdays are suspect: 20070101 vs 20050612'

    def test_possible_twin(self):
        lookup = InMemoryPenLookup([
            make_master(given='ROBERT', mincode='12345678', local_id='A2002'),
        ])
        result = match_student(make_transaction(), lookup)
        assert result.status == PenStatus.F1
        assert result.pen is None
        assert result.message == 'Possible twin: ROBERT vs JOHN'

    def test_is_possible_twin(self):
        t = make_transaction()
        assert is_possible_twin(t, make_master(given='ROBERT', mincode='12345678'))
        assert not is_possible_twin(t, make_master(given='ROBERT'))
        assert not is_possible_twin(t, make_master(mincode='12345678'))
        assert not is_possible_twin(t, make_master(given='ROBERT', mincode='12345678',
                                                   local_id='A1001'))


class TestMatchStudents:
    """Tests for batch matching."""

    def test_batch(self, single_lookup):
        transactions = [
            make_transaction(),
            make_transaction(surname='WILLIAMSON', given_name='KATE', dob='19990303'),
        ]
        results = match_students(transactions, single_lookup)
        assert [r.status for r in results] == [PenStatus.D1, PenStatus.D0]
        assert results[1].transaction is transactions[1]
