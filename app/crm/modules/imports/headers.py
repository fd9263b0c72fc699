"""
Column header -> Client field mapping for imports.

Accepted header styles:
- snake_case and camelCase field names (API-style sheets)
- the Czech labels of the company's inspection tracking sheet, where repeated
  labels such as "Kdy?" are told apart by position ("Kdy?", "Kdy?_1", ...)
- the column labels written by the client export
"""
from __future__ import annotations

from typing import Any

from app.crm.modules.clients.fields import FIELDS, camel_case

SALES_REP = "__sales_rep__"

TRACKING_SHEET_HEADERS: dict[str, str] = {
    "Klient - jméno": "company_name",
    "IČO": "ico",
    "FVE - jméno": "fve_name",
    "Adresa FVE": "fve_address",
    "Vzdálenost km od sídla a zpět": "distance_km",
    "Instalovaný výkon": "installed_power",
    "Kontakt - jméno": "contact_person",
    "Kontakt - telefon": "phone",
    "Kontakt - email": "email",
    "Obchodní zástupce": SALES_REP,
    "Zákaz dalších marketingových oslovení?": "marketing_ban",
    "Poslána ANO/NE": "offer_sent",
    "Posláno kam?": "offer_sent_to",
    "Kdy?": "offer_sent_date",
    "Souhlas s nabídkou ANO/NE": "offer_approved",
    "Kdy?_1": "offer_approved_date",
    "Pokud NE tak proč?": "offer_rejection_reason",
    "Cena uvedená na nabídce bez DPH?": "price_ex_vat",
    "Z toho cena za vyhodnocení dat bez DPH?": "data_analysis_price",
    "Z toho cena za sběr dat bez DPH?": "data_collection_price",
    "Samostatně cena dopravy - 15 kč/km - celkem bez DPH?": "transportation_price",
    "Maržová skupina A-B-C": "margin_group",
    "Domluveno na více inspekcí?": "multiple_inspections",
    "Do kdy?": "inspection_deadline",
    "Individuální smlouva? ANO/NE": "custom_contract",
    "Podepsáno kdy?": "contract_signed_date",
    "Připraveno k fakturaci": "ready_for_billing",
    "1. zálohá faktura: částka": "first_invoice_amount",
    "Kdy?_2": "first_invoice_date",
    "Splatnost?": "first_invoice_due_date",
    "Zaplaceno?": "first_invoice_paid",
    "2. zálohá faktura: částka": "second_invoice_amount",
    "Kdy?_3": "second_invoice_date",
    "Splatnost?_1": "second_invoice_due_date",
    "Zaplaceno?_1": "second_invoice_paid",
    "finální faktura: částka": "final_invoice_amount",
    "Kdy?_4": "final_invoice_date",
    "Splatnost?_2": "final_invoice_due_date",
    "Zaplaceno?_2": "final_invoice_paid",
    "Celkem s DPH": "total_price_inc_vat",
    "Souhlas s létáním poslán ANO/NE": "flight_consent_sent",
    "Kdy?_5": "flight_consent_sent_date",
    "Souhlas klientem podepsán?": "flight_consent_signed",
    "Kdy?_6": "flight_consent_signed_date",
    "Výkresy FVE doručeny ANO/NE?": "fve_drawings_received",
    "Kdy?_7": "fve_drawings_received_date",
    "Je nutné žádat?": "permission_required",
    "Žádost o OKL/OKP poslána? ANO/NE": "permission_requested",
    "Kdy?_8": "permission_requested_date",
    "Číslo žádosti": "permission_request_number",
    "Schváleno? Výsledný stav.": "permission_status",
    "Platnost do?": "permission_valid_until",
    "Předáno pilotovi? ANO/NE": "assigned_to_pilot",
    "Jméno pilota": "pilot_name",
    "Kdy?_9": "pilot_assigned_date",
    "Očekávaný termín letu?": "expected_flight_date",
    "Nafoceno? ANO/NE": "photos_taken",
    "Kdy?_10": "photos_date",
    "Čas?": "photos_time",
    "Teplota panelu?": "panel_temperature",
    "Osvit? Watt": "irradiance",
    "Upload? ANO/NE": "data_uploaded",
    "Zahájen proces analýzy? ANO/NE": "analysis_started",
    "Kdy?_11": "analysis_start_date",
    "Analyzováno?": "analysis_completed",
    "Kdy?_12": "analysis_completed_date",
    "Vytvořen report? ANO/NE": "report_created",
    "Odesláno klientovi? ANO/NE": "report_sent",
    "Kdy?_13": "report_sent_date",
    "Zpětná vazba od klienta? ANO/NE": "feedback_received",
    "Jaká?": "feedback_content",
}

EXPORT_HEADERS: dict[str, str] = {
    "Název společnosti": "company_name",
    "Kontaktní osoba": "contact_person",
    "Telefon": "phone",
    "Email": "email",
    "Status": "status",
    "Nabídka odeslána": "offer_sent_date",
    "Nabídka schválena": "offer_approved_date",
    "Termín inspekce": "inspection_deadline",
    "Smlouva podepsána": "contract_signed_date",
    "První faktura": "first_invoice_date",
    "Splatnost první faktury": "first_invoice_due_date",
    "Druhá faktura": "second_invoice_date",
    "Splatnost druhé faktury": "second_invoice_due_date",
    "Finální faktura": "final_invoice_date",
    "Splatnost finální faktury": "final_invoice_due_date",
    "Poznámky": "notes",
}

# camelCase keys used by older API-style sheets
LEGACY_KEYS: dict[str, str] = {
    "analysisPrice": "data_analysis_price",
    "transportPrice": "transportation_price",
    "pilotAssigned": "assigned_to_pilot",
    "illumination": "irradiance",
    "photosUploaded": "data_uploaded",
    "analysisStartedDate": "analysis_start_date",
    "salesRepName": SALES_REP,
    "salesRep": SALES_REP,
    "obchodniZastupce": SALES_REP,
    "sales_rep": SALES_REP,
    "sales_rep_name": SALES_REP,
}

# sales_rep_id is resolved from names, never taken from a sheet
_NOT_IMPORTABLE = frozenset({"sales_rep_id"})


def normalize_header(value: Any) -> str:
    return " ".join(str(value or "").split()).casefold()


def _build_aliases() -> dict[str, str]:
    aliases: dict[str, str] = {}
    for f in FIELDS:
        if f.name in _NOT_IMPORTABLE:
            continue
        aliases[normalize_header(f.name)] = f.name
        aliases[normalize_header(camel_case(f.name))] = f.name
    for source in (EXPORT_HEADERS, TRACKING_SHEET_HEADERS, LEGACY_KEYS):
        for label, field in source.items():
            aliases[normalize_header(label)] = field
    return aliases


HEADER_ALIASES: dict[str, str] = _build_aliases()


def field_for_header(header: Any) -> str | None:
    return HEADER_ALIASES.get(normalize_header(header))


def dedupe_headers(headers: list[Any]) -> list[str]:
    """
    ["Kdy?", "X", "Kdy?"] -> ["Kdy?", "X", "Kdy?_1"]
    """
    seen: dict[str, int] = {}
    out: list[str] = []
    for h in headers:
        label = " ".join(str(h).split()) if h is not None else ""
        key = normalize_header(label)
        if not key:
            out.append("")
            continue
        n = seen.get(key, 0)
        seen[key] = n + 1
        out.append(label if n == 0 else f"{label}_{n}")
    return out


def is_header_row(cells: list[Any]) -> bool:
    fields = {field_for_header(c) for c in dedupe_headers(list(cells))}
    return "company_name" in fields and "ico" in fields
