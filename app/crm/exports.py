from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime
from typing import Any

from flask import send_file
from openpyxl import Workbook
from openpyxl.styles import Font

from app.crm.constants import DRONE_SALE_STATUSES

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DATE_FORMAT = "DD.MM.YYYY"

Column = tuple[str, Callable[[Any], Any]]


def _rep_name(record: Any) -> str:
    rep = getattr(record, "sales_rep", None)
    if rep is None:
        return ""
    return rep.name or rep.email


def _day(value: datetime | date | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


CLIENT_COLUMNS: Sequence[Column] = (
    ("Název společnosti", lambda c: c.company_name),
    ("IČO", lambda c: c.ico or ""),
    ("Kontaktní osoba", lambda c: c.contact_person or ""),
    ("Telefon", lambda c: c.phone or ""),
    ("Email", lambda c: c.email or ""),
    ("Adresa FVE", lambda c: c.fve_address or ""),
    ("Status", lambda c: (c.status or "").replace("_", " ")),
    ("Nabídka odeslána", lambda c: c.offer_sent_date),
    ("Nabídka schválena", lambda c: c.offer_approved_date),
    ("Termín inspekce", lambda c: c.inspection_deadline),
    ("Smlouva podepsána", lambda c: c.contract_signed_date),
    ("První faktura", lambda c: c.first_invoice_date),
    ("Splatnost první faktury", lambda c: c.first_invoice_due_date),
    ("Druhá faktura", lambda c: c.second_invoice_date),
    ("Splatnost druhé faktury", lambda c: c.second_invoice_due_date),
    ("Finální faktura", lambda c: c.final_invoice_date),
    ("Splatnost finální faktury", lambda c: c.final_invoice_due_date),
    ("Obchodní zástupce", _rep_name),
    ("Poznámky", lambda c: c.notes or ""),
    ("Vytvořeno", lambda c: _day(c.created_at)),
    ("Aktualizováno", lambda c: _day(c.updated_at)),
)

# Columns left filled for clients whose full detail the exporting user may not see.
CLIENT_BASIC_COLUMNS = frozenset({"Název společnosti", "IČO", "Adresa FVE", "Obchodní zástupce"})

DRONE_SALE_COLUMNS: Sequence[Column] = (
    ("Company Name", lambda d: d.company_name),
    ("Contact Person", lambda d: d.contact_person or ""),
    ("Phone", lambda d: d.phone or ""),
    ("Email", lambda d: d.email or ""),
    ("Address", lambda d: d.address or ""),
    ("Status", lambda d: DRONE_SALE_STATUSES.get(d.status, (d.status or "").replace("_", " "))),
    ("Drone Model", lambda d: d.drone_model or ""),
    ("Drone Type", lambda d: d.drone_type or ""),
    ("Offer Sent Date", lambda d: d.offer_sent_date),
    ("Offer Approved Date", lambda d: d.offer_approved_date),
    ("Contract Signed Date", lambda d: d.contract_signed_date),
    ("Invoice Date", lambda d: d.invoice_date),
    ("Invoice Due Date", lambda d: d.invoice_due_date),
    ("Delivery Date", lambda d: d.delivery_date),
    ("Training Date", lambda d: d.training_date),
    ("Sales Rep", _rep_name),
    ("Notes", lambda d: d.notes or ""),
    ("Created At", lambda d: _day(d.created_at)),
    ("Updated At", lambda d: _day(d.updated_at)),
)


def build_workbook(
    sheet_title: str,
    columns: Sequence[Column],
    records: Iterable[Any],
    *,
    redact: Callable[[Any], bool] | None = None,
    keep: frozenset[str] = frozenset(),
) -> bytes:
    """
    One header row plus one row per record. Rows for which `redact` returns
    True only carry the columns named in `keep`.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    ws.append([label for label, _ in columns])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for record in records:
        hidden = redact is not None and redact(record)
        ws.append([None if hidden and label not in keep else getter(record) for label, getter in columns])
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            if isinstance(cell.value, (date, datetime)):
                cell.number_format = DATE_FORMAT
    for idx, (label, _) in enumerate(columns, start=1):
        ws.column_dimensions[ws.cell(row=1, column=idx).column_letter].width = max(12, len(label) + 2)
    ws.freeze_panes = "A2"

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def xlsx_response(data: bytes, prefix: str):
    filename = f"{prefix}-{date.today().isoformat()}.xlsx"
    return send_file(
        io.BytesIO(data),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename,
        max_age=0,
    )
