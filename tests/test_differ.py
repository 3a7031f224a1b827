import pytest

from casework.schemas import FieldChange
from casework.services.differ import detect_changes, parse_entry_values, summarize_changes


@pytest.fixture
def family(make_family):
    return make_family(email="claire@example.org", zakat_eligible=True)


@pytest.fixture
def entry(services, family):
    return services.contacts.build_entry(family)


def fields_of(changes):
    return {c.field: c.new_value for c in changes}


def test_freshly_built_entry_has_no_changes(family, entry):
    assert detect_changes(family, parse_entry_values(entry)) == []


def test_phone_formatting_is_not_a_change(family, entry):
    entry.phone_numbers = ["06 11 22 33 44"]

    assert detect_changes(family, parse_entry_values(entry)) == []


def test_directory_edits_are_detected(family, entry):
    entry.family_name = "Martin-Roux"
    entry.phone_numbers = ["07 98 76 54 32", "02 40 11 22 33"]
    entry.address.street = "8 Quai de la Fosse"
    entry.custom_fields.update({"Adultes": "3", "Zakat El Fitr": "Non", "Langue": "Anglais", "Criticité": "5"})

    changes = fields_of(detect_changes(family, parse_entry_values(entry)))

    assert changes == {
        "last_name": "Martin-Roux",
        "phone": "+33 7 98 76 54 32",
        "phone_secondary": "+33 2 40 11 22 33",
        "address": "8 Quai de la Fosse, 44000 Nantes",
        "adult_count": 3,
        "zakat_eligible": False,
        "language": "Anglais",
        "severity": 5,
    }


def test_email_comparison_ignores_case(family, entry):
    entry.email = "Claire@Example.org"

    assert detect_changes(family, parse_entry_values(entry)) == []


def test_out_of_range_severity_is_ignored(family, entry):
    entry.custom_fields["Criticité"] = "9"

    values = parse_entry_values(entry)

    assert "severity" not in values
    assert detect_changes(family, values) == []


def test_missing_custom_fields_are_not_defaulted(family, entry):
    entry.custom_fields = {}

    values = parse_entry_values(entry)

    assert "adult_count" not in values and "zakat_eligible" not in values
    assert detect_changes(family, values) == []


def test_blank_names_do_not_erase_the_row(family, entry):
    entry.middle_name = ""
    entry.family_name = ""

    assert detect_changes(family, parse_entry_values(entry)) == []


def test_summarize_changes():
    changes = [
        FieldChange(field="adult_count", old_value=2, new_value=3),
        FieldChange(field="phone", old_value="+33 6 11 22 33 44", new_value="+33 7 00 00 00 01"),
    ]

    assert summarize_changes(changes) == "adult_count: 2 → 3; phone: +33 6 11 22 33 44 → +33 7 00 00 00 01"
