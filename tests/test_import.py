import io
from datetime import date, datetime
from types import SimpleNamespace

from openpyxl import Workbook
from sqlalchemy.exc import OperationalError

from app.crm.db import session_scope
from app.crm.models import Log
from app.crm.modules.clients.models import Client
from app.crm.modules.imports import service as import_service
from app.crm.modules.imports.service import resolve_sales_rep

TRACKING_CSV = "\n".join(
    [
        "Základní informace;;;Nabídka;;;;",
        "Klient - jméno;IČO;Obchodní zástupce;Poslána ANO/NE;Kdy?;Souhlas s nabídkou ANO/NE;Kdy?;Cena uvedená na nabídce bez DPH?",
        "Solar A s.r.o.;12345678;Petr;ANO;15.03.2024;NE;;1 234,50",
        ";87654321;Jan Novák;ANO;;;;",
        "Solar B a.s.;11112222;Neznámý;ne;;ANO;20.03.2024;",
    ]
)


def _upload(client, payload: bytes, filename: str):
    return client.post(
        "/api/clients/import",
        data={"file": (io.BytesIO(payload), filename)},
        content_type="multipart/form-data",
    )


def _client_by_ico(app, ico):
    with session_scope(app) as s:
        c = s.query(Client).filter(Client.ico == ico).one_or_none()
        if c is None:
            return None
        return {
            "company_name": c.company_name,
            "status": c.status,
            "sales_rep_id": c.sales_rep_id,
            "offer_sent": c.offer_sent,
            "offer_sent_date": c.offer_sent_date,
            "offer_approved": c.offer_approved,
            "offer_approved_date": c.offer_approved_date,
            "price_ex_vat": c.price_ex_vat,
            "phone": c.phone,
            "marketing_ban": c.marketing_ban,
            "notes": c.notes,
        }


def test_resolve_sales_rep_order():
    jan = SimpleNamespace(id=1, name="Jan Novák", email="jan@example.com")
    jana = SimpleNamespace(id=2, name="Jana", email="jana@example.com")
    fallback = SimpleNamespace(id=99, name="Importer", email="imp@example.com")
    users = [jan, jana]

    assert resolve_sales_rep("jana", users, fallback) is jana
    assert resolve_sales_rep("Novák", users, fallback) is jan
    assert resolve_sales_rep("Jan Novák (obchod)", users, fallback) is jan
    assert resolve_sales_rep("JANA@example.com", [SimpleNamespace(id=3, name="", email="jana@example.com")], fallback).id == 3
    assert resolve_sales_rep("Nikdo", users, fallback) is fallback
    assert resolve_sales_rep("", users, fallback) is fallback
    assert resolve_sales_rep(None, users, fallback) is fallback


def test_import_tracking_csv(client, login, app, user_id):
    login("admin@example.com")
    r = _upload(client, TRACKING_CSV.encode("utf-8-sig"), "sledovani.csv")
    assert r.status_code == 200, r.json
    body = r.json
    assert body["success"] is True
    assert body["total"] == 3
    assert body["created"] == 2
    assert body["updated"] == 0
    assert body["summary"] == {"total_rows": 3, "new_clients": 2, "updated_clients": 0, "failed_rows": 1}
    assert len(body["errors"]) == 1
    assert body["errors"][0]["row"] == 4
    assert body["errors"][0]["error"] == "Missing required fields in row 4"
    assert body["errors"][0]["data"]["IČO"] == "87654321"

    a = _client_by_ico(app, "12345678")
    assert a["company_name"] == "Solar A s.r.o."
    assert a["status"] == "Nový"
    assert a["sales_rep_id"] == user_id("rep2@example.com")
    assert a["offer_sent"] is True
    assert a["offer_sent_date"] == date(2024, 3, 15)
    assert a["offer_approved"] is False
    assert a["price_ex_vat"] == 1234.5

    b = _client_by_ico(app, "11112222")
    assert b["sales_rep_id"] == user_id("admin@example.com")
    assert b["offer_sent"] is False
    assert b["offer_approved_date"] == date(2024, 3, 20)

    assert _client_by_ico(app, "87654321") is None

    with session_scope(app) as s:
        summary = s.query(Log).filter(Log.action == "client.import").one()
        assert summary.level == "warning"
        assert s.query(Log).filter(Log.action == "client.import_create").count() == 2


def test_import_xlsx_with_api_headers(client, login, app, user_id):
    wb = Workbook()
    ws = wb.active
    ws.append(["companyName", "ico", "phone", "marketingBan", "offerSentDate", "salesRepName"])
    ws.append(["FVE Beta", 1234567, 777123456, "ANO", datetime(2024, 1, 5), "rep@example.com"])
    buf = io.BytesIO()
    wb.save(buf)

    login("rep@example.com")
    r = _upload(client, buf.getvalue(), "clients.xlsx")
    assert r.status_code == 200, r.json
    assert r.json["created"] == 1
    assert r.json["errors"] == []

    c = _client_by_ico(app, "01234567")
    assert c["company_name"] == "FVE Beta"
    assert c["phone"] == "777123456"
    assert c["marketing_ban"] is True
    assert c["offer_sent_date"] == date(2024, 1, 5)
    assert c["sales_rep_id"] == user_id("rep@example.com")


def test_reimport_updates_by_ico(client, login, app):
    login("admin@example.com")
    first = "company_name;ico;status\nOld Name;22223333;Nabídka odeslána\n"
    assert _upload(client, first.encode(), "a.csv").json["created"] == 1

    second = "company_name;ico;notes;status\nNew Name;22223333;Druhý import;\n"
    r = _upload(client, second.encode(), "b.csv")
    assert r.json["created"] == 0
    assert r.json["updated"] == 1

    c = _client_by_ico(app, "22223333")
    assert c["company_name"] == "New Name"
    assert c["notes"] == "Druhý import"
    assert c["status"] == "Nabídka odeslána"

    with session_scope(app) as s:
        assert s.query(Client).filter(Client.ico == "22223333").count() == 1


def test_import_rejects_bad_uploads(client, login):
    login("admin@example.com")
    r = client.post("/api/clients/import", data={}, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.json["error"] == "No file provided."

    r = _upload(client, b"hello", "notes.txt")
    assert r.status_code == 400
    assert "Unsupported file type" in r.json["error"]

    r = _upload(client, b"definitely not a zip", "broken.xlsx")
    assert r.status_code == 400
    assert r.json["error"] == "The uploaded file could not be read."

    r = _upload(client, b"", "empty.csv")
    assert r.status_code == 400
    assert r.json["error"] == "No data found in the file."


def test_import_requires_permission(client, login):
    login("ext@example.com")
    r = _upload(client, TRACKING_CSV.encode(), "sledovani.csv")
    assert r.status_code == 403
    assert r.json["missing_permission"] == "import_clients"


def test_failing_row_is_rolled_back_and_later_rows_still_import(client, login, app, monkeypatch):
    real_find = import_service.find_by_ico

    def find_or_fail(s, ico):
        if ico == "22222222":
            # leave a half-written row behind before failing
            s.add(Client(company_name="Half written", ico="99999999"))
            s.flush()
            raise OperationalError("SELECT", {}, Exception("connection reset"))
        return real_find(s, ico)

    monkeypatch.setattr(import_service, "find_by_ico", find_or_fail)

    login("admin@example.com")
    csv_text = "company_name;ico\nPrvní;11111111\nDruhý;22222222\nTřetí;33333333\n"
    r = _upload(client, csv_text.encode(), "batch.csv")
    assert r.status_code == 200, r.json
    assert r.json["created"] == 2
    assert r.json["summary"]["failed_rows"] == 1
    assert r.json["errors"][0]["row"] == 3

    with session_scope(app) as s:
        icos = sorted(c.ico for c in s.query(Client).all())
    assert icos == ["11111111", "33333333"]


def test_import_cp1250_csv_from_czech_excel(client, login, app):
    csv_text = "Klient - jméno;IČO;Poznámky\nŽluťoučký kůň s.r.o.;44445555;Plán údržby\n"
    login("admin@example.com")
    r = _upload(client, csv_text.encode("cp1250"), "export-excel.csv")
    assert r.status_code == 200, r.json
    assert r.json["created"] == 1
    assert r.json["errors"] == []

    c = _client_by_ico(app, "44445555")
    assert c["company_name"] == "Žluťoučký kůň s.r.o."
    assert c["notes"] == "Plán údržby"
