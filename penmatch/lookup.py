"""Registry collaborator interface and an in-memory implementation."""

import logging
from collections import defaultdict
from typing import Iterable, Optional, Protocol

from penmatch import MasterRecord

log = logging.getLogger(__name__)


class PenLookup(Protocol):
    """Read-only access to the PEN registry and its reference tables."""

    def lookup_student_by_pen(self, pen: str) -> Optional[MasterRecord]:
        ...

    def lookup_no_init_no_local_id(
        self, dob: Optional[str], surname: str,
    ) -> list[MasterRecord]:
        ...

    def lookup_no_local_id(
        self, dob: Optional[str], surname: str, given: str,
    ) -> list[MasterRecord]:
        ...

    def lookup_no_init(
        self, dob: Optional[str], surname: str,
        mincode: Optional[str], local_id: str,
    ) -> list[MasterRecord]:
        ...

    def lookup_with_all_parts(
        self, dob: Optional[str], surname: str, given: str,
        mincode: Optional[str], local_id: str,
    ) -> list[MasterRecord]:
        ...

    def lookup_surname_frequency(self, surname: str) -> int:
        ...

    def lookup_nicknames(self, given: str) -> set[str]:
        ...


class InMemoryPenLookup:
    """PenLookup over a list of master records and a nickname table.

    A search returns every record with the same birth date, or whose
    surname starts with the surname prefix (and, if given, whose given name
    starts with the initial), or, for the local-id shapes, with the same
    mincode and local id.
    """

    def __init__(
        self,
        records: Iterable[MasterRecord],
        nicknames: Optional[dict[str, set[str]]] = None,
    ) -> None:
        self._records = list(records)
        self._by_pen = {r.pen: r for r in self._records}
        self._nicknames: dict[str, set[str]] = defaultdict(set)
        for name, related in (nicknames or {}).items():
            group = {name, *related}
            for member in group:
                self._nicknames[member].update(group - {member})
        log.debug(
            "Registry loaded: %d records, %d nickname entries",
            len(self._records), len(self._nicknames),
        )

    def __len__(self) -> int:
        return len(self._records)

    def lookup_student_by_pen(self, pen: str) -> Optional[MasterRecord]:
        return self._by_pen.get(pen)

    def _search(
        self,
        dob: Optional[str],
        surname: str,
        given: Optional[str] = None,
        mincode: Optional[str] = None,
        local_id: Optional[str] = None,
    ) -> list[MasterRecord]:
        found: list[MasterRecord] = []
        for record in self._records:
            if dob and record.dob == dob:
                found.append(record)
            elif (surname and (record.surname or '').startswith(surname)
                  and (not given or (record.given or '').startswith(given))):
                found.append(record)
            elif (local_id and mincode and record.mincode == mincode
                  and record.local_id == local_id):
                found.append(record)
        return found

    def lookup_no_init_no_local_id(
        self, dob: Optional[str], surname: str,
    ) -> list[MasterRecord]:
        return self._search(dob, surname)

    def lookup_no_local_id(
        self, dob: Optional[str], surname: str, given: str,
    ) -> list[MasterRecord]:
        return self._search(dob, surname, given)

    def lookup_no_init(
        self, dob: Optional[str], surname: str,
        mincode: Optional[str], local_id: str,
    ) -> list[MasterRecord]:
        return self._search(dob, surname, mincode=mincode, local_id=local_id)

    def lookup_with_all_parts(
        self, dob: Optional[str], surname: str, given: str,
        mincode: Optional[str], local_id: str,
    ) -> list[MasterRecord]:
        return self._search(dob, surname, given, mincode, local_id)

    def lookup_surname_frequency(self, surname: str) -> int:
        """Count registry entries whose surname starts with `surname`."""
        if not surname:
            return 0
        return sum(
            1 for r in self._records if (r.surname or '').startswith(surname)
        )

    def lookup_nicknames(self, given: str) -> set[str]:
        return set(self._nicknames.get(given, ()))
