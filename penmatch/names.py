"""Given/middle name splitting for transactions and master records."""

from typing import Optional

from penmatch import MasterRecord, NameSet, TransactionRecord
from penmatch.lookup import PenLookup


def split_given_name(name: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Split a given name into alternate given and middle parts.

    The name is split on the first space, then independently on the first
    dash; a dash split overwrites a space split. The middle part keeps the
    separator, e.g. 'MARY ANN' -> ('MARY', ' ANN') and
    'MARY-ANN' -> ('MARY', '-ANN').

    Args:
        name: Given name, possibly None.

    Returns:
        (alternate given, alternate middle), both None if no split applies.
    """
    alternate_given: Optional[str] = None
    alternate_middle: Optional[str] = None
    if name is None:
        return alternate_given, alternate_middle

    for separator in (' ', '-'):
        index = name.find(separator)
        if index != -1:
            alternate_given = name[:index]
            alternate_middle = name[index:]
    return alternate_given, alternate_middle


def store_names_from_transaction(
    transaction: TransactionRecord,
    lookup: Optional[PenLookup] = None,
) -> NameSet:
    """Build the NameSet of a transaction, including nickname expansion."""
    names = NameSet(
        legal_given=transaction.given_name,
        legal_middle=transaction.middle_name,
        usual_given=transaction.usual_given_name,
        usual_middle=transaction.usual_middle_name,
    )
    names.alternate_legal_given, names.alternate_legal_middle = (
        split_given_name(transaction.given_name)
    )
    names.alternate_usual_given, names.alternate_usual_middle = (
        split_given_name(transaction.usual_given_name)
    )
    if lookup is not None and transaction.given_name:
        names.nicknames.update(lookup.lookup_nicknames(transaction.given_name))
    return names


def store_names_from_master(master: MasterRecord) -> NameSet:
    """Build the NameSet of a registry candidate (no nickname expansion)."""
    names = NameSet(
        legal_given=master.given,
        legal_middle=master.middle,
        usual_given=master.usual_given,
        usual_middle=master.usual_middle,
    )
    names.alternate_legal_given, names.alternate_legal_middle = (
        split_given_name(master.given)
    )
    names.alternate_usual_given, names.alternate_usual_middle = (
        split_given_name(master.usual_given)
    )
    return names
