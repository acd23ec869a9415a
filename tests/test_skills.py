from unittest.mock import MagicMock

import pytest

from staffdb import Mutation, SkillWriter, StatementCountMaintainer


@pytest.fixture
def inserted(monkeypatch):
    """Replaces execute_values, recording its arguments and echoing the values as rows"""
    calls = []

    def fake_execute_values(cur, sql, values, page_size=100, fetch=False):
        calls.append({"sql": sql, "values": values, "page_size": page_size, "fetch": fetch})
        return [{"anumber": v[0], "sname": v[1], "slevel": v[2] if len(v) > 2 else 1} for v in values]

    monkeypatch.setattr("staffdb.skills.execute_values", fake_execute_values)
    return calls


@pytest.fixture
def maintainer():
    maintainer = StatementCountMaintainer()
    maintainer.after_mutation = MagicMock()
    return maintainer


class TestSkillWriter:
    """Test the transactional write path for possessed skills."""

    def test_add_commits_with_recompute(self, conn, cursor, inserted, maintainer):
        rows = SkillWriter(conn, maintainer).add_skills([(1, "SQL", 5), (1, "Java", 3)])

        assert [row["sname"] for row in rows] == ["SQL", "Java"]
        maintainer.after_mutation.assert_called_once_with(cursor, Mutation.INSERT, rows)
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()

    def test_batch_is_one_statement(self, conn, inserted, maintainer):
        SkillWriter(conn, maintainer).add_skills([(n, "SQL", 1) for n in range(250)])

        assert len(inserted) == 1
        assert inserted[0]["page_size"] == 250
        assert inserted[0]["fetch"] is True

    def test_locks_applicants_in_order(self, conn, cursor, inserted, maintainer):
        SkillWriter(conn, maintainer).add_skills([(3, "SQL", 1), (1, "SQL", 1), (3, "Java", 2)])

        first = cursor.execute.call_args_list[0]
        assert first.args[1] == ([1, 3],)

    def test_remove_reports_delete(self, conn, cursor, inserted, maintainer):
        SkillWriter(conn, maintainer).remove_skills([(2, "Java")])

        op = maintainer.after_mutation.call_args.args[1]
        assert op is Mutation.DELETE
        assert "DELETE FROM staff.spossessed" in inserted[0]["sql"]

    def test_clear_deletes_all_of_applicant(self, conn, cursor, maintainer):
        cursor.fetchall.return_value = [{"anumber": 7, "sname": "SQL", "slevel": 2}]

        rows = SkillWriter(conn, maintainer).clear_skills(7)

        assert rows == [{"anumber": 7, "sname": "SQL", "slevel": 2}]
        assert cursor.execute.call_args_list[-1].args[1] == (7,)
        maintainer.after_mutation.assert_called_once_with(cursor, Mutation.DELETE, rows)

    def test_failure_rolls_back(self, conn, inserted, maintainer):
        maintainer.after_mutation.side_effect = RuntimeError("recompute failed")

        with pytest.raises(RuntimeError, match="recompute failed"):
            SkillWriter(conn, maintainer).add_skills([(1, "SQL", 5)])

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_without_maintainer_trusts_triggers(self, conn, inserted):
        rows = SkillWriter(conn).add_skills([(1, "SQL", 5)])

        assert len(rows) == 1
        conn.commit.assert_called_once()

    def test_empty_input_is_noop(self, conn, maintainer):
        writer = SkillWriter(conn, maintainer)

        assert writer.add_skills([]) == []
        assert writer.remove_skills([]) == []
        conn.cursor.assert_not_called()
        conn.commit.assert_not_called()
