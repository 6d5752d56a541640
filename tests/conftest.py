from decimal import Decimal

import pytest

from calcomp.classifier import MappingTable
from calcomp.models import CompensationRecord


@pytest.fixture()
def mapping():
    return MappingTable.from_dict({
        "PROF-HCOMP": ("Professor", True),
        "PROF": ("Professor", True),
        "ASSOC PROF": ("Associate Professor", True),
        "LIBRARIAN": ("Librarian", True),
        "DEAN": ("Dean", False),
        "CUSTODIAN": ("Facilities", False),
    })


@pytest.fixture()
def make_record():
    def _make(title, year=2015, total_pay=0, name="DOE, JANE", **amounts):
        values = {key: Decimal(str(value)) for key, value in amounts.items()}
        return CompensationRecord(name=name, title=title, year=year, total_pay=Decimal(str(total_pay)), **values)
    return _make
