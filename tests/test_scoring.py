"""Tests for penmatch.scoring module."""

import pytest

from penmatch import NameSet
from penmatch.scoring import (
    clean_name,
    match_address,
    match_birthday,
    match_given_name,
    match_local_id,
    match_middle_name,
    match_sex,
    match_surname,
    shares_prefix,
)
from tests.factories import make_master, make_transaction


class TestHelpers:
    """Tests for name cleaning and prefix comparison."""

    def test_clean_name_strips_separators(self):
        assert clean_name(' ann') == 'ANN'
        assert clean_name('-ANN') == 'ANN'

    def test_clean_name_empty(self):
        assert clean_name(' - ') is None
        assert clean_name(None) is None

    def test_shares_prefix(self):
        assert shares_prefix('SMITHERSON', 'SMITHSON', 4)
        assert not shares_prefix('SMI', 'SMI', 4)
        assert not shares_prefix('SMYTHE', 'SMITHE', 4)


class TestMatchSex:
    """Tests for sex scoring."""

    def test_same_sex(self):
        assert match_sex(make_transaction(), make_master()) == 5

    def test_different_sex(self):
        assert match_sex(make_transaction(sex='F'), make_master()) == 0

    def test_missing_sex(self):
        assert match_sex(make_transaction(sex=None), make_master(sex=None)) == 0


class TestMatchBirthday:
    """Tests for birthday scoring."""

    @pytest.mark.parametrize('master_dob, expected', [
        ('20050612', 20),   # identical
        ('20051206', 15),   # day and month transposed
        ('20050613', 10),   # year and month
        ('20051112', 10),   # year and day
        ('20060612', 10),   # month and day
        ('20051101', 5),    # year only
        ('19990101', 0),
    ])
    def test_birthday_points(self, master_dob, expected):
        assert match_birthday(make_transaction(), make_master(dob=master_dob)) == expected

    def test_missing_birthday(self):
        assert match_birthday(make_transaction(dob=None), make_master()) == 0
        assert match_birthday(make_transaction(), make_master(dob=None)) == 0


class TestMatchSurname:
    """Tests for surname scoring."""

    def test_legal_surname_match(self):
        result = match_surname(make_transaction(), make_master())
        assert result.points == 20
        assert result.legal_surname_used

    def test_usual_surname_match(self):
        result = match_surname(
            make_transaction(surname='JONES', usual_surname='SMITHERSON'), make_master(),
        )
        assert result.points == 20
        assert not result.legal_surname_used

    def test_master_usual_surname_match(self):
        result = match_surname(
            make_transaction(), make_master(surname='JONES', usual_surname='SMITHERSON'),
        )
        assert result.points == 20
        assert not result.legal_surname_used

    def test_four_character_prefix(self):
        result = match_surname(make_transaction(), make_master(surname='SMITHSON'))
        assert result.points == 10

    def test_compound_surname(self):
        result = match_surname(
            make_transaction(surname='LEE-SMITHERSON'), make_master(),
        )
        assert result.points == 10

    def test_no_match(self):
        assert match_surname(make_transaction(), make_master(surname='JONES')).points == 0

    def test_missing_surname(self):
        assert match_surname(make_transaction(surname=None), make_master()).points == 0


class TestMatchGivenName:
    """Tests for given name scoring."""

    def test_exact(self):
        result = match_given_name(NameSet(legal_given='JOHN'), NameSet(legal_given='JOHN'))
        assert result.points == 20

    def test_alternate_given_exact(self):
        names = NameSet(legal_given='MARY ANN', alternate_legal_given='MARY',
                        alternate_legal_middle=' ANN')
        assert match_given_name(names, NameSet(legal_given='MARY')).points == 20

    def test_ten_characters(self):
        result = match_given_name(
            NameSet(legal_given='CHRISTOPHER'), NameSet(legal_given='CHRISTOPHE'),
        )
        assert result.points == 15

    def test_four_characters(self):
        result = match_given_name(NameSet(legal_given='JOHNNY'), NameSet(legal_given='JOHN'))
        assert result.points == 10

    def test_nickname(self):
        names = NameSet(legal_given='BOB', nicknames={'ROBERT'})
        assert match_given_name(names, NameSet(legal_given='ROBERT')).points == 10

    def test_initial(self):
        result = match_given_name(NameSet(legal_given='J'), NameSet(legal_given='JOHN'))
        assert result.points == 5

    def test_flip_detected(self):
        result = match_given_name(
            NameSet(legal_given='PAUL', legal_middle='JOHN'),
            NameSet(legal_given='JOHN', legal_middle='PAUL'),
        )
        assert result.points == 0
        assert result.given_name_flip

    def test_missing(self):
        result = match_given_name(NameSet(), NameSet(legal_given='JOHN'))
        assert result.points == 0
        assert not result.given_name_flip


class TestMatchMiddleName:
    """Tests for middle name scoring."""

    def test_exact(self):
        result = match_middle_name(NameSet(legal_middle='PAUL'), NameSet(legal_middle='PAUL'))
        assert result.points == 20

    def test_split_given_matches_middle(self):
        names = NameSet(legal_given='MARY ANN', alternate_legal_given='MARY',
                        alternate_legal_middle=' ANN')
        assert match_middle_name(names, NameSet(legal_middle='ANN')).points == 20

    def test_initial(self):
        result = match_middle_name(NameSet(legal_middle='P'), NameSet(legal_middle='PAUL'))
        assert result.points == 5

    def test_flip_detected(self):
        result = match_middle_name(
            NameSet(legal_given='PAUL', legal_middle='JOHN'),
            NameSet(legal_given='JOHN', legal_middle='PAUL'),
        )
        assert result.points == 0
        assert result.middle_name_flip

    def test_both_missing(self):
        assert match_middle_name(NameSet(), NameSet()).points == 0


class TestMatchLocalId:
    """Tests for school and local id scoring."""

    def test_same_school_and_local_id(self):
        master = make_master(mincode='12345678', local_id='A1001')
        assert match_local_id(make_transaction(), master, 'A1001') == 20

    def test_same_normalized_local_id(self):
        t = make_transaction(local_id='00 1234')
        master = make_master(mincode='12345678', local_id='1234')
        assert match_local_id(t, master, '1234') == 20

    def test_same_school(self):
        master = make_master(mincode='12345678')
        assert match_local_id(make_transaction(), master, 'A1001') == 10

    def test_placeholders_never_match(self):
        t = make_transaction(local_id=None)
        master = make_master(mincode='12345678', local_id=None)
        assert match_local_id(t, master, 'TTT') == 10

    def test_same_district(self):
        master = make_master(mincode='12399999')
        assert match_local_id(make_transaction(), master, 'A1001') == 5

    def test_different_district(self):
        assert match_local_id(make_transaction(), make_master(), 'A1001') == 0

    def test_missing_mincode(self):
        assert match_local_id(make_transaction(mincode=None), make_master(), 'A1001') == 0


class TestMatchAddress:
    """Tests for postal code scoring."""

    def test_same_postal_code(self):
        assert match_address(make_transaction(), make_master(postal='V8W 1A1')) == 10

    def test_rural_postal_code(self):
        t = make_transaction(postal='V0N1B0')
        assert match_address(t, make_master(postal='V0N1B0')) == 1

    def test_different_postal_code(self):
        assert match_address(make_transaction(), make_master(postal='V5K0A1')) == 0

    def test_missing_postal_code(self):
        assert match_address(make_transaction(postal=None), make_master(postal=None)) == 0
