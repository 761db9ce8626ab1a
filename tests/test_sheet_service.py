"""
Tests for the sheet registry against SQLite: quota, code uniqueness,
resolution, ownership checks and cascading delete.
"""
import random

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from studysheets.extensions import db
from studysheets.models.audit import AuditLog
from studysheets.models.question import Question, Difficulty
from studysheets.models.reaction import ItemType, Reaction
from studysheets.models.sheet import Sheet
from studysheets.models.user import User
from studysheets.utils import reactions
from studysheets.utils.drafts import SheetDraft
from studysheets.utils.errors import (
    CodeCollision, Forbidden, NotFound, QuotaExceeded, StoreUnavailable,
    ValidationError,
)
from studysheets.utils.sheet_service import (
    create_sheet, delete_sheet, get_owned_sheet, issue_sheet, list_owned,
    owner_sheet_count, public_view, resolve_by_code, update_sheet,
)


def _draft(title="DSA Prep", description=None):
    return SheetDraft(title=title, description=description)


def _counter(user) -> int:
    return db.session.get(User, user.id).sheet_count


# ── create_sheet ──────────────────────────────────────────────────────────────

class TestCreateSheet:

    def test_creates_with_given_code(self, make_user):
        owner = make_user()
        sheet = create_sheet(owner, _draft(description="  arrays first "), "k3f9qz")
        assert sheet.id is not None
        assert sheet.access_code == "K3F9QZ"
        assert sheet.user_id == owner.id
        assert sheet.description == "arrays first"
        assert _counter(owner) == 1

    def test_writes_audit_entry(self, make_user):
        owner = make_user()
        sheet = create_sheet(owner, _draft(), "AAAAAA")
        entry = AuditLog.query.filter_by(action="sheet_created").one()
        assert entry.resource_id == sheet.id
        assert entry.user_id == owner.id

    def test_code_collision(self, make_user):
        a, b = make_user(), make_user()
        create_sheet(a, _draft(), "AAAAAA")
        with pytest.raises(CodeCollision) as exc:
            create_sheet(b, _draft("Other"), "AAAAAA")
        assert exc.value.retryable is True
        assert Sheet.query.count() == 1
        # the failed attempt must not consume b's quota
        assert _counter(b) == 0

    def test_quota_exceeded_on_fourth(self, make_user):
        owner = make_user()
        for code in ("AAAAA1", "AAAAA2", "AAAAA3"):
            create_sheet(owner, _draft(), code)
        with pytest.raises(QuotaExceeded):
            create_sheet(owner, _draft(), "AAAAA4")
        assert owner_sheet_count(owner) == 3
        assert _counter(owner) == 3

    def test_quota_is_per_user(self, make_user):
        a, b = make_user(), make_user()
        for code in ("AAAAA1", "AAAAA2", "AAAAA3"):
            create_sheet(a, _draft(), code)
        create_sheet(b, _draft(), "BBBBB1")
        assert owner_sheet_count(b) == 1

    def test_blank_title_rejected(self, make_user):
        owner = make_user()
        with pytest.raises(ValidationError) as exc:
            create_sheet(owner, _draft(title="   "), "AAAAAA")
        assert "title" in exc.value.fields
        assert _counter(owner) == 0

    def test_malformed_code_rejected(self, make_user):
        owner = make_user()
        with pytest.raises(ValidationError):
            create_sheet(owner, _draft(), "AB-12")
        assert Sheet.query.count() == 0


# ── issue_sheet ───────────────────────────────────────────────────────────────

class TestIssueSheet:

    def test_generates_code_when_none_given(self, make_user):
        sheet = issue_sheet(make_user(), _draft())
        assert len(sheet.access_code) == 6

    def test_retries_after_collision(self, make_user):
        a, b = make_user(), make_user()
        create_sheet(a, _draft(), "AAAAAA")
        sheet = issue_sheet(b, _draft("Mine"), code="AAAAAA", rng=random.Random(1))
        assert sheet.access_code != "AAAAAA"
        assert sheet.user_id == b.id
        assert _counter(b) == 1

    def test_gives_up_after_attempts(self, make_user, monkeypatch):
        a, b = make_user(), make_user()
        create_sheet(a, _draft(), "AAAAAA")
        monkeypatch.setattr("studysheets.utils.access_codes.generate", lambda rng=None: "AAAAAA")
        with pytest.raises(CodeCollision):
            issue_sheet(b, _draft(), attempts=3)
        assert owner_sheet_count(b) == 0

    def test_quota_is_not_retried(self, make_user):
        owner = make_user()
        for _ in range(3):
            issue_sheet(owner, _draft())
        with pytest.raises(QuotaExceeded):
            issue_sheet(owner, _draft())


# ── lookup ────────────────────────────────────────────────────────────────────

class TestResolveByCode:

    def test_resolves(self, make_user):
        owner = make_user("Asha Rao")
        sheet = create_sheet(owner, _draft(), "K3F9QZ")
        found = resolve_by_code(" k3f9qz")
        assert found.id == sheet.id
        view = public_view(found)
        assert view["title"] == "DSA Prep"
        assert view["code"] == "K3F9QZ"
        assert view["owner_id"] == owner.id
        assert view["owner_name"] == "Asha Rao"
        assert view["question_count"] == 0

    def test_unknown_code(self, ctx):
        with pytest.raises(NotFound):
            resolve_by_code("ZZZZZZ")

    def test_malformed_code_is_not_found(self, ctx):
        with pytest.raises(NotFound):
            resolve_by_code("")

    def test_each_code_maps_to_one_sheet(self, make_user):
        owner = make_user()
        a = issue_sheet(owner, _draft("A"))
        b = issue_sheet(owner, _draft("B"))
        assert a.access_code != b.access_code
        assert resolve_by_code(a.access_code).id == a.id
        assert resolve_by_code(b.access_code).id == b.id


class TestListOwned:

    def test_newest_first_and_only_mine(self, make_user):
        owner, other = make_user(), make_user()
        first = create_sheet(owner, _draft("First"), "AAAAA1")
        second = create_sheet(owner, _draft("Second"), "AAAAA2")
        create_sheet(other, _draft("Theirs"), "BBBBB1")
        titles = [s.title for s in list_owned(owner)]
        assert titles == ["Second", "First"]
        assert {s.id for s in list_owned(owner)} == {first.id, second.id}

    def test_empty(self, make_user):
        assert list_owned(make_user()) == []


# ── update / delete ───────────────────────────────────────────────────────────

class TestUpdateSheet:

    def test_owner_can_rename(self, make_user):
        owner = make_user()
        sheet = create_sheet(owner, _draft(), "AAAAAA")
        update_sheet(owner, sheet.id, _draft("Graphs", "BFS/DFS"))
        refreshed = db.session.get(Sheet, sheet.id)
        assert refreshed.title == "Graphs"
        assert refreshed.description == "BFS/DFS"

    def test_viewer_cannot_rename(self, make_user):
        owner, viewer = make_user(), make_user()
        sheet = create_sheet(owner, _draft(), "AAAAAA")
        with pytest.raises(Forbidden):
            update_sheet(viewer, sheet.id, _draft("Hijacked"))
        assert db.session.get(Sheet, sheet.id).title == "DSA Prep"


class TestDeleteSheet:

    def test_cascades_questions_and_reactions(self, make_user):
        owner, viewer = make_user(), make_user()
        sheet = create_sheet(owner, _draft(), "K3F9QZ")
        for level in Difficulty:
            db.session.add(Question(sheet_id=sheet.id, title=level.value,
                                    difficulty=level, completed=False, visit_count=0))
        db.session.commit()
        reactions.set_reaction(viewer, sheet.id, ItemType.SHEET, "like")

        delete_sheet(owner, sheet.id)

        assert Question.query.count() == 0
        assert Reaction.query.count() == 0
        assert _counter(owner) == 0
        with pytest.raises(NotFound):
            resolve_by_code("K3F9QZ")

    def test_frees_quota(self, make_user):
        owner = make_user()
        sheets = [issue_sheet(owner, _draft()) for _ in range(3)]
        delete_sheet(owner, sheets[0].id)
        issue_sheet(owner, _draft("Replacement"))
        assert owner_sheet_count(owner) == 3
        assert _counter(owner) == 3

    def test_only_owner(self, make_user):
        owner, viewer = make_user(), make_user()
        sheet = create_sheet(owner, _draft(), "AAAAAA")
        with pytest.raises(Forbidden):
            delete_sheet(viewer, sheet.id)
        assert db.session.get(Sheet, sheet.id) is not None

    def test_missing(self, make_user):
        with pytest.raises(NotFound):
            delete_sheet(make_user(), 9999)

    def test_deleted_is_terminal(self, make_user):
        owner = make_user()
        sheet = create_sheet(owner, _draft(), "AAAAAA")
        delete_sheet(owner, sheet.id)
        with pytest.raises(NotFound):
            delete_sheet(owner, sheet.id)
        with pytest.raises(NotFound):
            get_owned_sheet(owner, sheet.id)

    def test_reactions_on_other_sheets_survive(self, make_user):
        owner, viewer = make_user(), make_user()
        doomed = create_sheet(owner, _draft(), "AAAAA1")
        kept = create_sheet(owner, _draft(), "AAAAA2")
        reactions.set_reaction(viewer, doomed.id, ItemType.SHEET, "like")
        reactions.set_reaction(viewer, kept.id, ItemType.SHEET, "dislike")
        delete_sheet(owner, doomed.id)
        assert reactions.counts(kept.id, ItemType.SHEET) == {"likes": 0, "dislikes": 1}


class TestQuotaInvariant:

    def test_counter_tracks_live_count(self, make_user):
        owner = make_user()
        rng = random.Random(3)
        live = []
        for step in range(12):
            if live and rng.random() < 0.4:
                delete_sheet(owner, live.pop(rng.randrange(len(live))))
            else:
                try:
                    live.append(issue_sheet(owner, _draft(f"S{step}")).id)
                except QuotaExceeded:
                    pass
            assert owner_sheet_count(owner) <= 3
            assert _counter(owner) == owner_sheet_count(owner)


class TestAttemptsSetting:

    def test_non_positive_setting_still_tries_once(self, ctx, make_user):
        ctx.config["SHEET_CODE_ATTEMPTS"] = 0
        sheet = issue_sheet(make_user(), _draft())
        assert sheet is not None
        assert len(sheet.access_code) == 6

    def test_zero_attempts_surfaces_collision(self, make_user):
        a, b = make_user(), make_user()
        create_sheet(a, _draft(), "AAAAAA")
        with pytest.raises(CodeCollision):
            issue_sheet(b, _draft(), code="AAAAAA", attempts=0)


# ── store outages ─────────────────────────────────────────────────────────────

def _connection_lost(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection lost"))


class TestStoreUnavailable:

    def test_create_rolls_back_and_is_retryable(self, make_user, monkeypatch):
        owner = make_user()
        monkeypatch.setattr(Session, "execute", _connection_lost)
        with pytest.raises(StoreUnavailable) as exc:
            create_sheet(owner, _draft(), "AAAAAA")
        assert exc.value.retryable is True
        monkeypatch.undo()
        assert _counter(owner) == 0
        assert Sheet.query.count() == 0

    def test_lookup(self, ctx, monkeypatch):
        monkeypatch.setattr(Session, "execute", _connection_lost)
        with pytest.raises(StoreUnavailable):
            resolve_by_code("AAAAAA")

    def test_listing(self, make_user, monkeypatch):
        owner = make_user()
        monkeypatch.setattr(Session, "execute", _connection_lost)
        with pytest.raises(StoreUnavailable):
            list_owned(owner)
