import pytest

from casework.models import Language
from casework.services.normalizer import DataNormalizer


@pytest.mark.parametrize("raw", [
    "06 12 34 56 78",
    "0612345678",
    "+33 6 12 34 56 78",
    "0033612345678",
    "612345678",
    "(06) 12.34.56.78",
])
def test_normalize_phone_accepts_common_french_shapes(raw):
    assert DataNormalizer.normalize_phone(raw) == "+33 6 12 34 56 78"


def test_normalize_phone_keeps_short_numbers_as_digits():
    assert DataNormalizer.normalize_phone("12-34") == "1234"
    assert DataNormalizer.normalize_phone(None) == ""


def test_phone_key_ignores_formatting():
    assert DataNormalizer.phone_key("06 12 34 56 78") == DataNormalizer.phone_key("+33 (6) 12 34 56 78")
    assert DataNormalizer.phone_key("06 12 34 56 78") == "+33612345678"


def test_is_valid_phone():
    assert DataNormalizer.is_valid_phone("06 12 34 56 78")
    assert DataNormalizer.is_valid_phone("0033 6 12 34 56 78")
    assert DataNormalizer.is_valid_phone("+33612345678")
    assert not DataNormalizer.is_valid_phone("0012")
    assert not DataNormalizer.is_valid_phone("0033012345678")
    assert not DataNormalizer.is_valid_phone("")


def test_is_valid_email():
    assert DataNormalizer.is_valid_email("jean.dupont@example.com")
    assert not DataNormalizer.is_valid_email("jean.dupont@example")
    assert not DataNormalizer.is_valid_email("jean dupont@example.com")
    assert not DataNormalizer.is_valid_email(None)


def test_parse_address_components_splits_postal_code_and_city():
    parts = DataNormalizer.parse_address_components("5 Rue Crébillon, 44000 Nantes")
    assert parts == {"street": "5 Rue Crébillon", "postal_code": "44000", "city": "Nantes", "country": "France"}


def test_parse_address_components_reads_trailing_country():
    parts = DataNormalizer.parse_address_components("12 Avenue Louise, 1050 Bruxelles, Belgique")
    assert parts["city"] == "1050 Bruxelles"
    assert parts["postal_code"] == ""
    assert parts["country"] == "Belgique"


def test_parse_address_components_single_part_is_street_only():
    parts = DataNormalizer.parse_address_components("Rue sans ville")
    assert parts["street"] == "Rue sans ville"
    assert parts["postal_code"] == parts["city"] == ""
    assert DataNormalizer.parse_address_components("")["street"] == ""


def test_format_address_canonical_round_trips_components():
    canonical = DataNormalizer.format_address_canonical(" 1 Rue de la Paix ", "44000", "Nantes")
    assert canonical == "1 Rue de la Paix, 44000 Nantes"
    parts = DataNormalizer.parse_address_components(canonical)
    assert DataNormalizer.format_address_canonical(parts["street"], parts["postal_code"], parts["city"]) == canonical
    assert DataNormalizer.format_address_canonical("1 Rue", "", None) == "1 Rue"


def test_format_address_for_geocoding_appends_country():
    assert DataNormalizer.format_address_for_geocoding("1 Rue", "44000", "Nantes") == "1 Rue, 44000, Nantes, France"


@pytest.mark.parametrize("token, expected", [
    ("Oui", True), ("yes", True), ("نعم", True), (True, True),
    ("non", False), ("No", False), ("لا", False), ("peut-être", False), (None, False),
])
def test_parse_yes_no_token(token, expected):
    assert DataNormalizer.parse_yes_no_token(token) is expected


def test_yes_no_label_follows_language():
    assert DataNormalizer.yes_no_label(True, "Arabe") == "نعم"
    assert DataNormalizer.yes_no_label(False, "en") == "No"
    assert DataNormalizer.yes_no_label(True, "unknown") == "Oui"


def test_map_field_name_tolerates_curly_apostrophes():
    assert DataNormalizer.map_field_name("Combien d’adultes vivent actuellement dans votre foyer ?") == "adult_count"
    assert DataNormalizer.map_field_name("  Nom de famille ") == "last_name"
    assert DataNormalizer.map_field_name("Question inconnue") is None


def test_parse_form_response_drops_unknown_headers():
    parsed = DataNormalizer.parse_form_response({
        "Nom de famille": "Dupont",
        "اللقب": "Dupont",
        "Prénom de la personne à contacter": None,
        "Question inconnue": "x",
    })
    assert parsed == {"last_name": "Dupont", "first_name": ""}


def test_parse_int():
    assert DataNormalizer.parse_int("2,0") == 2
    assert DataNormalizer.parse_int("trois", default=-1) == -1
    assert DataNormalizer.parse_int("") == 0


def test_parse_severity_truncates_and_bounds():
    assert DataNormalizer.parse_severity("3.7") == (True, 3, None)
    assert DataNormalizer.parse_severity(0) == (True, 0, None)

    ok, value, error = DataNormalizer.parse_severity("6")
    assert not ok and value is None and "between 0 and 5" in error

    assert DataNormalizer.parse_severity("")[0] is False
    assert DataNormalizer.parse_severity("haute")[0] is False
    assert DataNormalizer.parse_severity(True)[0] is False


def test_languages():
    assert DataNormalizer.normalize_language("ar") == Language.ARABIC
    assert DataNormalizer.normalize_language("Anglais") == Language.ENGLISH
    assert DataNormalizer.normalize_language("Klingon") == Language.FRENCH
    assert DataNormalizer.is_supported_language("en")
    assert not DataNormalizer.is_supported_language("Klingon")
    assert DataNormalizer.language_code("Arabe") == "ar"


def test_detect_language_from_origin():
    assert DataNormalizer.detect_language_from_origin("Familles – AR") == Language.ARABIC
    assert DataNormalizer.detect_language_from_origin("Familles – EN") == Language.ENGLISH
    assert DataNormalizer.detect_language_from_origin("Other sheet") == Language.FRENCH
    assert DataNormalizer.detect_language_from_origin(None) == Language.FRENCH


def test_is_consent_refused():
    assert DataNormalizer.is_consent_refused("I refuse to have my personal data collected and processed")
    assert DataNormalizer.is_consent_refused("أرفض جمع ومعالجة بياناتي الشخصية")
    assert not DataNormalizer.is_consent_refused("J'accepte")
    assert not DataNormalizer.is_consent_refused(None)


def test_extract_file_ids_reads_both_link_shapes():
    links = "https://drive.google.com/open?id=abc_1, https://drive.google.com/file/d/def-2/view, not a link"
    assert DataNormalizer.extract_file_ids(links) == ["abc_1", "def-2"]
    assert DataNormalizer.extract_file_ids("") == []


def test_format_document_links():
    assert DataNormalizer.format_document_links(["a", "b"]) == (
        "https://drive.google.com/file/d/a/view, https://drive.google.com/file/d/b/view"
    )
