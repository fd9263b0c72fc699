from app.crm.modules.imports.headers import (
    SALES_REP,
    dedupe_headers,
    field_for_header,
    is_header_row,
    normalize_header,
)
from app.crm.modules.imports.parsers import decode_csv, find_header_index, guess_delimiter, parse_sheet


def test_dedupe_headers_numbers_repeats():
    assert dedupe_headers(["Kdy?", "X", "Kdy?", None, "Kdy?"]) == ["Kdy?", "X", "Kdy?_1", "", "Kdy?_2"]


def test_header_aliases():
    assert field_for_header("companyName") == "company_name"
    assert field_for_header("company_name") == "company_name"
    assert field_for_header("  Klient -  jméno ") == "company_name"
    assert field_for_header("Název společnosti") == "company_name"
    assert field_for_header("Kdy?_13") == "report_sent_date"
    assert field_for_header("Cena uvedená na nabídce bez DPH?") == "price_ex_vat"
    assert field_for_header("Obchodní zástupce") == SALES_REP
    assert field_for_header("salesRepName") == SALES_REP
    assert field_for_header("sales_rep_id") is None
    assert field_for_header("Něco jiného") is None


def test_normalize_header_collapses_whitespace_and_case():
    assert normalize_header("  IČO\n") == "ičo"
    assert normalize_header(None) == ""


def test_banner_row_is_skipped():
    rows = [
        ["Základní informace", None, "Nabídka"],
        ["Klient - jméno", "IČO", "Poslána ANO/NE"],
        ["Solar", "12345678", "ANO"],
    ]
    assert is_header_row(rows[0]) is False
    assert is_header_row(rows[1]) is True
    assert find_header_index(rows) == 1


def test_header_falls_back_to_first_non_empty_row():
    rows = [[None, ""], ["Name", "Other"], ["a", "b"]]
    assert find_header_index(rows) == 1
    assert find_header_index([]) is None


def test_parse_sheet_maps_fields_and_row_numbers():
    rows = [
        ["Banner", None, None, None],
        ["Klient - jméno", "IČO", "Kdy?", "Kdy?"],
        ["Solar", "12345678", "01.02.2024", "03.04.2024"],
        [None, None, None, None],
        ["Wind", "87654321", None, None],
    ]
    parsed = parse_sheet(rows)
    assert [r.row_number for r in parsed] == [3, 5]
    first = parsed[0]
    assert first.values["company_name"] == "Solar"
    assert first.values["offer_sent_date"] == "01.02.2024"
    assert first.values["offer_approved_date"] == "03.04.2024"
    assert first.raw["Kdy?_1"] == "03.04.2024"


def test_first_non_empty_column_wins_for_same_field():
    rows = [["company_name", "Klient - jméno", "ico"], ["", "Solar", "1"], ["First", "Second", "2"]]
    parsed = parse_sheet(rows)
    assert parsed[0].values["company_name"] == "Solar"
    assert parsed[1].values["company_name"] == "First"


def test_guess_delimiter():
    assert guess_delimiter("a;b;c\n1;2;3") == ";"
    assert guess_delimiter("\na,b,c") == ","
    assert guess_delimiter("a\tb") == "\t"
    assert guess_delimiter("single") == ","


def test_decode_csv_falls_back_to_cp1250():
    assert decode_csv("Klient - jméno;IČO".encode("cp1250")) == "Klient - jméno;IČO"
    assert decode_csv("\ufeffKlient - jméno".encode("utf-8")) == "Klient - jméno"
