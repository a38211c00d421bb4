from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from todos_api.repositories import ListQuery, TodoRepository


class TestCreate:
    def test_returns_persisted_row(self, repo: TodoRepository):
        result = repo.create({"title": "Buy milk"})
        assert result.success
        assert result.validation == []
        assert not result.not_found
        item = result.item
        assert isinstance(item["id"], int)
        assert item["title"] == "Buy milk"
        assert item["position"] == 0
        assert item["completed"] is False
        assert item["due"] is None
        assert item["created"] is not None
        assert item["updated"] is not None

    def test_validation_failure_writes_nothing(self, repo: TodoRepository):
        result = repo.create({"title": "", "position": -1})
        assert not result.success
        assert result.item is None
        assert [e.field for e in result.validation] == ["title", "position"]
        assert repo.list() == []

    def test_ids_are_unique(self, repo: TodoRepository):
        ids = {repo.create({"title": f"t{i}"}).item["id"] for i in range(5)}
        assert len(ids) == 5

    def test_title_is_escaped_without_stripping(self, repo: TodoRepository):
        item = repo.create({"title": "  <em>hi</em>  "}).item
        assert item["title"] == "  &lt;em&gt;hi&lt;/em&gt;  "

    def test_due_keeps_its_instant(self, repo: TodoRepository):
        item = repo.create({"title": "Call", "due": "2099-12-25T10:00:00+05:00"}).item
        assert item["due"] == datetime(2099, 12, 25, 5, 0, tzinfo=timezone.utc)
        assert repo.get(item["id"])["due"] == datetime(2099, 12, 25, 5, 0, tzinfo=timezone.utc)

    def test_timestamps_are_utc(self, repo: TodoRepository):
        item = repo.create({"title": "Stamp", "due": "2099-12-25"}).item
        for key in ("due", "created", "updated"):
            assert item[key].utcoffset() == timedelta(0)


class TestList:
    def test_filter_and_order(self, repo: TodoRepository):
        for position, completed in [(2, True), (0, False), (1, True)]:
            repo.create({"title": "t", "position": position, "completed": completed})

        done = repo.list(ListQuery(completed=True, order="desc"))
        assert [t["position"] for t in done] == [2, 1]
        assert all(t["completed"] for t in done)

        everything = repo.list(ListQuery())
        assert [t["position"] for t in everything] == [0, 1, 2]


class TestUpdate:
    def test_missing_id_is_not_found(self, repo: TodoRepository):
        result = repo.update(999, {"title": ""})
        assert result.not_found
        assert result.validation == []
        assert not result.success

    def test_partial_changes_only_present_fields(self, repo: TodoRepository):
        item = repo.create({"title": "Keep", "position": 4, "due": "2100-01-01"}).item

        updated = repo.update(item["id"], {"completed": True}).item
        assert updated["title"] == "Keep"
        assert updated["position"] == 4
        assert updated["due"] == item["due"]
        assert updated["completed"] is True
        assert updated["created"] == item["created"]

    def test_full_replace_resets_omitted_fields(self, repo: TodoRepository):
        item = repo.create({"title": "Old", "position": 4, "completed": True, "due": "2100-01-01"}).item

        replaced = repo.update(item["id"], {"title": "New"}, partial=False).item
        assert replaced["title"] == "New"
        assert replaced["position"] == 0
        assert replaced["completed"] is False
        assert replaced["due"] is None

    def test_validation_errors_leave_row_unchanged(self, repo: TodoRepository):
        item = repo.create({"title": "Stable"}).item

        result = repo.update(item["id"], {"title": "x" * 200, "completed": "yes"})
        assert [e.field for e in result.validation] == ["title", "completed"]
        assert repo.get(item["id"])["title"] == "Stable"

    def test_escapes_title(self, repo: TodoRepository):
        item = repo.create({"title": "plain"}).item
        updated = repo.update(item["id"], {"title": "<script>x</script>"}).item
        assert updated["title"] == "&lt;script&gt;x&lt;/script&gt;"


class TestDelete:
    def test_delete_once(self, repo: TodoRepository):
        item = repo.create({"title": "Gone"}).item
        assert repo.delete(item["id"]) is True
        assert repo.delete(item["id"]) is False
        assert repo.get(item["id"]) is None


class TestIdsOutsideIntegerRange:
    def test_get_update_delete_missing(self, repo: TodoRepository):
        for todo_id in (0, -1, 2**31, 10**25):
            assert repo.get(todo_id) is None
            assert repo.update(todo_id, {"title": "x"}).not_found
            assert repo.delete(todo_id) is False


class TestDatabaseErrors:
    def test_errors_propagate(self, repo: TodoRepository, caplog):
        with repo.engine.begin() as conn:
            conn.execute(text("DROP TABLE todos"))

        with pytest.raises(OperationalError):
            repo.get(1)
        assert "Error executing query" in caplog.text
