from types import SimpleNamespace

from app.crm.db import session_scope
from app.crm.models import RolePermission, User
from app.crm.modules.clients.models import Client
from app.crm.visibility import (
    CLIENT_VISIBILITY,
    apply_visibility,
    can_view,
    can_view_all,
    filter_visible,
    visibility_filter,
)


def _user(s, email):
    return s.query(User).filter(User.email == email).one()


def test_unassigned_client_visible_to_anyone_with_view_permission(app):
    with session_scope(app) as s:
        for email in ("rep@example.com", "rep2@example.com", "ext@example.com", "office@example.com"):
            assert can_view(s, _user(s, email), None, CLIENT_VISIBILITY) is True


def test_assigned_client_visible_to_rep_and_privileged_only(app):
    with session_scope(app) as s:
        rep = _user(s, "rep@example.com")
        assert can_view(s, rep, rep.id, CLIENT_VISIBILITY) is True
        assert can_view(s, _user(s, "rep2@example.com"), rep.id, CLIENT_VISIBILITY) is False
        assert can_view(s, _user(s, "ext@example.com"), rep.id, CLIENT_VISIBILITY) is False
        assert can_view(s, _user(s, "office@example.com"), rep.id, CLIENT_VISIBILITY) is True
        assert can_view(s, _user(s, "admin@example.com"), rep.id, CLIENT_VISIBILITY) is True


def test_view_permission_is_required_even_for_unassigned(app):
    with session_scope(app) as s:
        s.merge(RolePermission(role="EXTERNAL", permission="view_clients", allowed=False))
        s.flush()
        assert can_view(s, _user(s, "ext@example.com"), None, CLIENT_VISIBILITY) is False


def test_view_all_permission_lifts_restriction(app):
    with session_scope(app) as s:
        rep2 = _user(s, "rep2@example.com")
        assert can_view_all(s, rep2, CLIENT_VISIBILITY) is False
        s.merge(RolePermission(role="INTERNAL", permission="view_all_clients", allowed=True))
        s.flush()
        assert can_view_all(s, rep2, CLIENT_VISIBILITY) is True
        assert visibility_filter(s, rep2, Client, CLIENT_VISIBILITY) is None


def test_query_filter_matches_in_memory_filter(app):
    with session_scope(app) as s:
        rep = _user(s, "rep@example.com")
        rep2 = _user(s, "rep2@example.com")
        s.add_all(
            [
                Client(company_name="Mine", ico="10000001", sales_rep_id=rep.id),
                Client(company_name="Theirs", ico="10000002", sales_rep_id=rep2.id),
                Client(company_name="Nobody", ico="10000003", sales_rep_id=None),
            ]
        )
        s.flush()

        q = apply_visibility(s.query(Client), s, rep, Client, CLIENT_VISIBILITY)
        assert sorted(c.company_name for c in q.all()) == ["Mine", "Nobody"]

        visible = filter_visible(s, rep, s.query(Client).all(), CLIENT_VISIBILITY)
        assert sorted(c.company_name for c in visible) == ["Mine", "Nobody"]

        office = _user(s, "office@example.com")
        q = apply_visibility(s.query(Client), s, office, Client, CLIENT_VISIBILITY)
        assert q.count() == 3


def test_inactive_or_missing_user_sees_nothing():
    assert can_view_all(None, None, CLIENT_VISIBILITY) is False
    inactive = SimpleNamespace(id=1, role="ADMIN", is_active=False)
    assert can_view_all(None, inactive, CLIENT_VISIBILITY) is False
