"""
Client field catalogue.

Every editable Client column is listed once with its value kind, display
category, Czech label and the permission needed to change it. Serialization,
the categorized detail view, field-level edit checks and the importer all
read from here.
"""
from __future__ import annotations

from dataclasses import dataclass

from app.crm.constants import (
    EDIT_CLIENT,
    EDIT_CLIENT_ADDRESS,
    EDIT_CLIENT_CONTACT,
    EDIT_CLIENT_DOCUMENTS,
    EDIT_CLIENT_INVOICES,
    EDIT_CLIENT_NAME,
    EDIT_CLIENT_STATUS,
)

TEXT = "text"
BOOL = "bool"
NUMBER = "number"
DATE = "date"
INT = "int"

BASIC_INFO = "základní_informace"
CONTACTS = "kontakty"
OFFER = "nabídka_a_smlouva"
INVOICING = "fakturace"
DOCUMENTS = "dokumenty_od_klienta"
PILOT = "sběr_dat_pilot"
ANALYSIS = "analýza_a_report"
EXPERIENCE = "zákaznická_zkušenost"
OTHER = "ostatní"

CATEGORIES: dict[str, str] = {
    BASIC_INFO: "Základní informace",
    CONTACTS: "Kontakty",
    OFFER: "Nabídka a smlouva",
    INVOICING: "Fakturace",
    DOCUMENTS: "Dokumenty od klienta",
    PILOT: "Sběr dat - pilot",
    ANALYSIS: "Analýza a report",
    EXPERIENCE: "Zákaznická zkušenost",
    OTHER: "Ostatní",
}


@dataclass(frozen=True)
class ClientField:
    name: str
    kind: str
    category: str
    label: str
    permission: str = EDIT_CLIENT


FIELDS: tuple[ClientField, ...] = (
    ClientField("company_name", TEXT, BASIC_INFO, "Název společnosti", EDIT_CLIENT_NAME),
    ClientField("ico", TEXT, BASIC_INFO, "IČO", EDIT_CLIENT_NAME),
    ClientField("parent_company", TEXT, BASIC_INFO, "Mateřská firma", EDIT_CLIENT_NAME),
    ClientField("parent_company_ico", TEXT, BASIC_INFO, "IČO mateřské firmy", EDIT_CLIENT_NAME),
    ClientField("data_box", TEXT, BASIC_INFO, "Datová schránka", EDIT_CLIENT_ADDRESS),
    ClientField("fve_name", TEXT, BASIC_INFO, "Název FVE", EDIT_CLIENT_NAME),
    ClientField("installed_power", NUMBER, BASIC_INFO, "Instalovaný výkon"),
    ClientField("fve_address", TEXT, BASIC_INFO, "Adresa FVE", EDIT_CLIENT_ADDRESS),
    ClientField("gps_coordinates", TEXT, BASIC_INFO, "GPS souřadnice", EDIT_CLIENT_ADDRESS),
    ClientField("distance_km", NUMBER, BASIC_INFO, "Vzdálenost tam a zpět (km)"),
    ClientField("service_company", TEXT, BASIC_INFO, "Servisní firma"),
    ClientField("service_company_ico", TEXT, BASIC_INFO, "IČO servisní firmy"),
    ClientField("contact_person", TEXT, CONTACTS, "Kontaktní osoba", EDIT_CLIENT_CONTACT),
    ClientField("phone", TEXT, CONTACTS, "Telefon", EDIT_CLIENT_CONTACT),
    ClientField("email", TEXT, CONTACTS, "Email", EDIT_CLIENT_CONTACT),
    ClientField("contact_role", TEXT, CONTACTS, "Funkce kontaktu", EDIT_CLIENT_CONTACT),
    ClientField("sales_rep_id", INT, CONTACTS, "Obchodní zástupce", EDIT_CLIENT_CONTACT),
    ClientField("sales_rep_email", TEXT, CONTACTS, "Email obchodního zástupce", EDIT_CLIENT_CONTACT),
    ClientField("marketing_ban", BOOL, OFFER, "Zákaz marketingových oslovení", EDIT_CLIENT_STATUS),
    ClientField("offer_sent", BOOL, OFFER, "Nabídka odeslána"),
    ClientField("offer_sent_to", TEXT, OFFER, "Nabídka odeslána kam"),
    ClientField("offer_sent_date", DATE, OFFER, "Datum odeslání nabídky"),
    ClientField("offer_approved", BOOL, OFFER, "Nabídka schválena"),
    ClientField("offer_approved_date", DATE, OFFER, "Datum schválení nabídky"),
    ClientField("offer_rejection_reason", TEXT, OFFER, "Důvod odmítnutí nabídky"),
    ClientField("price_ex_vat", NUMBER, OFFER, "Cena bez DPH"),
    ClientField("data_analysis_price", NUMBER, OFFER, "Cena za vyhodnocení dat"),
    ClientField("data_collection_price", NUMBER, OFFER, "Cena za sběr dat"),
    ClientField("transportation_price", NUMBER, OFFER, "Cena dopravy"),
    ClientField("margin_group", TEXT, OFFER, "Maržová skupina"),
    ClientField("multiple_inspections", BOOL, OFFER, "Více inspekcí"),
    ClientField("inspection_deadline", DATE, OFFER, "Termín inspekce"),
    ClientField("custom_contract", BOOL, OFFER, "Individuální smlouva"),
    ClientField("contract_signed_date", DATE, OFFER, "Datum podpisu smlouvy"),
    ClientField("ready_for_billing", BOOL, OFFER, "Připraveno k fakturaci", EDIT_CLIENT_INVOICES),
    ClientField("first_invoice_amount", NUMBER, INVOICING, "Částka první zálohy", EDIT_CLIENT_INVOICES),
    ClientField("first_invoice_date", DATE, INVOICING, "Datum první faktury", EDIT_CLIENT_INVOICES),
    ClientField("first_invoice_due_date", DATE, INVOICING, "Splatnost první faktury", EDIT_CLIENT_INVOICES),
    ClientField("first_invoice_paid", BOOL, INVOICING, "První faktura zaplacena", EDIT_CLIENT_INVOICES),
    ClientField("second_invoice_amount", NUMBER, INVOICING, "Částka druhé zálohy", EDIT_CLIENT_INVOICES),
    ClientField("second_invoice_date", DATE, INVOICING, "Datum druhé faktury", EDIT_CLIENT_INVOICES),
    ClientField("second_invoice_due_date", DATE, INVOICING, "Splatnost druhé faktury", EDIT_CLIENT_INVOICES),
    ClientField("second_invoice_paid", BOOL, INVOICING, "Druhá faktura zaplacena", EDIT_CLIENT_INVOICES),
    ClientField("final_invoice_amount", NUMBER, INVOICING, "Částka finální faktury", EDIT_CLIENT_INVOICES),
    ClientField("final_invoice_date", DATE, INVOICING, "Datum finální faktury", EDIT_CLIENT_INVOICES),
    ClientField("final_invoice_due_date", DATE, INVOICING, "Splatnost finální faktury", EDIT_CLIENT_INVOICES),
    ClientField("final_invoice_paid", BOOL, INVOICING, "Finální faktura zaplacena", EDIT_CLIENT_INVOICES),
    ClientField("total_price_ex_vat", NUMBER, INVOICING, "Celkem bez DPH", EDIT_CLIENT_INVOICES),
    ClientField("total_price_inc_vat", NUMBER, INVOICING, "Celkem s DPH", EDIT_CLIENT_INVOICES),
    ClientField("flight_consent_sent", BOOL, DOCUMENTS, "Souhlas s létáním odeslán", EDIT_CLIENT_DOCUMENTS),
    ClientField("flight_consent_sent_date", DATE, DOCUMENTS, "Datum odeslání souhlasu", EDIT_CLIENT_DOCUMENTS),
    ClientField("flight_consent_signed", BOOL, DOCUMENTS, "Souhlas podepsán", EDIT_CLIENT_DOCUMENTS),
    ClientField("flight_consent_signed_date", DATE, DOCUMENTS, "Datum podpisu souhlasu", EDIT_CLIENT_DOCUMENTS),
    ClientField("fve_drawings_received", BOOL, DOCUMENTS, "Výkresy FVE doručeny", EDIT_CLIENT_DOCUMENTS),
    ClientField("fve_drawings_received_date", DATE, DOCUMENTS, "Datum doručení výkresů", EDIT_CLIENT_DOCUMENTS),
    ClientField("permission_required", BOOL, DOCUMENTS, "Nutné žádat o OKL", EDIT_CLIENT_DOCUMENTS),
    ClientField("permission_requested", BOOL, DOCUMENTS, "Žádost o OKL/OKP odeslána", EDIT_CLIENT_DOCUMENTS),
    ClientField("permission_requested_date", DATE, DOCUMENTS, "Datum odeslání žádosti", EDIT_CLIENT_DOCUMENTS),
    ClientField("permission_request_number", TEXT, DOCUMENTS, "Číslo žádosti", EDIT_CLIENT_DOCUMENTS),
    ClientField("permission_status", TEXT, DOCUMENTS, "Status žádosti", EDIT_CLIENT_DOCUMENTS),
    ClientField("permission_valid_until", DATE, DOCUMENTS, "Platnost do", EDIT_CLIENT_DOCUMENTS),
    ClientField("assigned_to_pilot", BOOL, PILOT, "Předáno pilotovi"),
    ClientField("pilot_name", TEXT, PILOT, "Jméno pilota"),
    ClientField("pilot_assigned_date", DATE, PILOT, "Datum předání pilotovi"),
    ClientField("expected_flight_date", DATE, PILOT, "Očekávaný termín letu"),
    ClientField("photos_taken", BOOL, PILOT, "Fotografie pořízeny"),
    ClientField("photos_date", DATE, PILOT, "Datum pořízení fotografií"),
    ClientField("photos_time", TEXT, PILOT, "Čas pořízení fotografií"),
    ClientField("panel_temperature", NUMBER, PILOT, "Teplota panelu"),
    ClientField("irradiance", NUMBER, PILOT, "Osvit (Watt)"),
    ClientField("weather", TEXT, PILOT, "Počasí"),
    ClientField("wind_speed", NUMBER, PILOT, "Rychlost větru (m/s)"),
    ClientField("data_uploaded", BOOL, PILOT, "Data nahrána"),
    ClientField("analysis_started", BOOL, ANALYSIS, "Analýza zahájena"),
    ClientField("analysis_start_date", DATE, ANALYSIS, "Datum zahájení analýzy"),
    ClientField("analysis_completed", BOOL, ANALYSIS, "Analýza dokončena"),
    ClientField("analysis_completed_date", DATE, ANALYSIS, "Datum dokončení analýzy"),
    ClientField("report_created", BOOL, ANALYSIS, "Report vytvořen"),
    ClientField("report_sent", BOOL, ANALYSIS, "Report odeslán"),
    ClientField("report_sent_date", DATE, ANALYSIS, "Datum odeslání reportu"),
    ClientField("feedback_received", BOOL, EXPERIENCE, "Zpětná vazba obdržena"),
    ClientField("feedback_content", TEXT, EXPERIENCE, "Obsah zpětné vazby"),
    ClientField("status", TEXT, OTHER, "Status", EDIT_CLIENT_STATUS),
    ClientField("client_type", TEXT, OTHER, "Typ klienta"),
    ClientField("notes", TEXT, OTHER, "Poznámky"),
)

FIELD_BY_NAME: dict[str, ClientField] = {f.name: f for f in FIELDS}

BASIC_INFO_FIELDS: tuple[str, ...] = tuple(f.name for f in FIELDS if f.category == BASIC_INFO)


def edit_permission_for(field_name: str) -> str:
    f = FIELD_BY_NAME.get(field_name)
    return f.permission if f else EDIT_CLIENT


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)
