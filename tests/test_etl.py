import json
from pathlib import Path

import pytest

from staffdb import DataLoader
from staffdb.etl import TABLES

DATA_PATH = Path(__file__).parent.parent / "data" / "sample_data.json"


class TestDataLoader:
    """Test JSON loading into the staff schema."""

    def test_inserts_in_foreign_key_order(self, conn, cursor, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({
            "employee": [{"emp_id": 1, "first_name": "A", "last_name": "B", "dept_id": 1,
                          "hire_date": "2020-01-01", "salary": 10}],
            "department": [{"dept_id": 1, "name": "IT", "manager": None, "budget": 100}]
        }))

        DataLoader(conn).load_data(str(path))

        statements = [call.args[0] for call in cursor.executemany.call_args_list]
        assert statements[0].startswith("INSERT INTO staff.department")
        assert statements[1].startswith("INSERT INTO staff.employee")
        conn.commit.assert_called_once()

    def test_rows_follow_column_order(self, conn, cursor, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"skill": [{"description": "Querying", "sname": "SQL"}]}))

        DataLoader(conn).load_data(str(path))

        values = list(cursor.executemany.call_args.args[1])
        assert values == [("SQL", "Querying")]

    def test_unknown_table(self, conn, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"offices": []}))

        with pytest.raises(ValueError, match="offices"):
            DataLoader(conn).load_data(str(path))
        conn.commit.assert_not_called()

    def test_sample_data_matches_tables(self):
        data = json.loads(DATA_PATH.read_text())
        assert set(data) == set(TABLES)
        for table, rows in data.items():
            for row in rows:
                assert set(row) == set(TABLES[table])
