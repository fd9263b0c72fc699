"""
Central constants for the CRM application: roles, permission catalogue, statuses.
"""
from __future__ import annotations

ROLE_ADMIN = "ADMIN"
ROLE_ADMINISTRATION = "ADMINISTRATION"
ROLE_INTERNAL = "INTERNAL"
ROLE_EXTERNAL = "EXTERNAL"

ROLES = (ROLE_ADMIN, ROLE_ADMINISTRATION, ROLE_INTERNAL, ROLE_EXTERNAL)

# Roles that see every client and drone sale regardless of the assigned rep.
PRIVILEGED_ROLES = frozenset({ROLE_ADMIN, ROLE_ADMINISTRATION})

# Client management
VIEW_CLIENTS = "view_clients"
VIEW_ALL_CLIENTS = "view_all_clients"
ADD_CLIENT = "add_client"
EDIT_CLIENT = "edit_client"
EDIT_CLIENT_NAME = "edit_client_name"
EDIT_CLIENT_CONTACT = "edit_client_contact"
EDIT_CLIENT_ADDRESS = "edit_client_address"
EDIT_CLIENT_STATUS = "edit_client_status"
EDIT_CLIENT_DOCUMENTS = "edit_client_documents"
EDIT_CLIENT_INVOICES = "edit_client_invoices"
DELETE_CLIENTS = "delete_clients"
IMPORT_CLIENTS = "import_clients"
EXPORT_CLIENTS = "export_clients"

# Drone sales
VIEW_DRONE_SALES = "view_drone_sales"
VIEW_ALL_DRONE_SALES = "view_all_drone_sales"
CREATE_DRONE_SALE = "create_drone_sale"
EDIT_DRONE_SALE_NAME = "edit_drone_sale_name"
EDIT_DRONE_SALE_CONTACT = "edit_drone_sale_contact"
EDIT_DRONE_SALE_STATUS = "edit_drone_sale_status"
DELETE_DRONE_SALE = "delete_drone_sale"
EXPORT_DRONE_SALES = "export_drone_sales"

# Administration
VIEW_USERS = "view_users"
CREATE_USER = "create_user"
EDIT_USER = "edit_user"
DELETE_USER = "delete_user"
MANAGE_PERMISSIONS = "manage_permissions"
VIEW_LOGS = "view_logs"

# System
ADMIN = "admin"
SYSTEM_ADMIN = "system_admin"

# key -> display name (ordered; drives the admin permission matrix)
PERMISSIONS: dict[str, str] = {
    VIEW_CLIENTS: "Clients: view",
    VIEW_ALL_CLIENTS: "Clients: view all (ignore sales rep)",
    ADD_CLIENT: "Clients: add",
    EDIT_CLIENT: "Clients: edit other fields",
    EDIT_CLIENT_NAME: "Clients: edit name and IČO",
    EDIT_CLIENT_CONTACT: "Clients: edit contacts and sales rep",
    EDIT_CLIENT_ADDRESS: "Clients: edit address",
    EDIT_CLIENT_STATUS: "Clients: edit status",
    EDIT_CLIENT_DOCUMENTS: "Clients: edit documents and permits",
    EDIT_CLIENT_INVOICES: "Clients: edit invoicing",
    DELETE_CLIENTS: "Clients: delete",
    IMPORT_CLIENTS: "Clients: import",
    EXPORT_CLIENTS: "Clients: export",
    VIEW_DRONE_SALES: "Drone sales: view",
    VIEW_ALL_DRONE_SALES: "Drone sales: view all (ignore sales rep)",
    CREATE_DRONE_SALE: "Drone sales: create",
    EDIT_DRONE_SALE_NAME: "Drone sales: edit company name",
    EDIT_DRONE_SALE_CONTACT: "Drone sales: edit contact",
    EDIT_DRONE_SALE_STATUS: "Drone sales: edit status",
    DELETE_DRONE_SALE: "Drone sales: delete",
    EXPORT_DRONE_SALES: "Drone sales: export",
    VIEW_USERS: "Users: view",
    CREATE_USER: "Users: create",
    EDIT_USER: "Users: edit",
    DELETE_USER: "Users: delete",
    MANAGE_PERMISSIONS: "Permissions: manage",
    VIEW_LOGS: "Logs: view",
    ADMIN: "Admin: full client detail",
    SYSTEM_ADMIN: "System administration",
}

_CLIENT_EDIT = (
    EDIT_CLIENT,
    EDIT_CLIENT_NAME,
    EDIT_CLIENT_CONTACT,
    EDIT_CLIENT_ADDRESS,
    EDIT_CLIENT_STATUS,
    EDIT_CLIENT_DOCUMENTS,
    EDIT_CLIENT_INVOICES,
)

# Seeded grants. ADMIN is implicit; anything not listed stays without a row (denied).
DEFAULT_ROLE_PERMISSIONS: dict[str, dict[str, bool]] = {
    ROLE_ADMINISTRATION: {
        **{k: True for k in PERMISSIONS if k not in (MANAGE_PERMISSIONS, SYSTEM_ADMIN, DELETE_USER)},
    },
    ROLE_INTERNAL: {
        VIEW_CLIENTS: True,
        VIEW_ALL_CLIENTS: False,
        ADD_CLIENT: True,
        **{k: True for k in _CLIENT_EDIT},
        IMPORT_CLIENTS: True,
        EXPORT_CLIENTS: True,
        VIEW_DRONE_SALES: True,
        VIEW_ALL_DRONE_SALES: False,
        CREATE_DRONE_SALE: True,
        EDIT_DRONE_SALE_NAME: True,
        EDIT_DRONE_SALE_CONTACT: True,
        EDIT_DRONE_SALE_STATUS: True,
        DELETE_DRONE_SALE: False,
        EXPORT_DRONE_SALES: True,
    },
    ROLE_EXTERNAL: {
        VIEW_CLIENTS: True,
        VIEW_ALL_CLIENTS: False,
        EDIT_CLIENT_CONTACT: True,
        VIEW_DRONE_SALES: True,
        VIEW_ALL_DRONE_SALES: False,
        EDIT_DRONE_SALE_CONTACT: True,
    },
}

# Client pipeline statuses (free text in the database; these are the known values).
CLIENT_STATUS_NEW = "Nový"
CLIENT_STATUS_OFFER_SENT = "Nabídka odeslána"
CLIENT_STATUS_DONE = "Dokončeno"

UNASSIGNED_REP_LABEL = "Nepřiřazeno"

DRONE_SALE_STATUSES: dict[str, str] = {
    "new": "Nový",
    "contacted": "Kontaktován",
    "offer_sent": "Nabídka odeslána",
    "offer_approved": "Nabídka schválena",
    "contract_signed": "Smlouva podepsána",
    "delivered": "Dodáno",
    "completed": "Dokončeno",
    "cancelled": "Zrušeno",
}

LOG_LEVELS = ("info", "warning", "error")

CZECH_MONTH_ABBR = ("Led", "Úno", "Bře", "Dub", "Kvě", "Čvn", "Čvc", "Srp", "Zář", "Říj", "Lis", "Pro")
