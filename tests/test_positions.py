from staffdb import advertised_positions, join_titles
from staffdb.positions import iter_position_titles


class TestJoinTitles:
    """Test folding of ordered position titles."""

    def test_no_titles(self):
        assert join_titles([]) == ""

    def test_single_title_is_unseparated(self):
        assert join_titles(["Accountant"]) == "Accountant"

    def test_many_titles(self):
        titles = ["Data Analyst", "Database Administrator", "Software Engineer"]
        assert join_titles(titles) == "Data Analyst; Database Administrator; Software Engineer"

    def test_custom_separator(self):
        assert join_titles(["a", "b"], separator=", ") == "a, b"

    def test_consumes_generators(self):
        assert join_titles(title for title in ("x", "y")) == "x; y"


class TestAdvertisedPositions:
    """Test position titles read through a cursor."""

    def test_titles_in_cursor_order(self, conn, cursor):
        cursor.__iter__.return_value = iter([("Data Analyst",), ("Software Engineer",)])

        assert advertised_positions(conn, "Acme Corp") == "Data Analyst; Software Engineer"
        assert cursor.execute.call_args.args[1] == ("Acme Corp",)

    def test_employer_without_positions(self, conn, cursor):
        cursor.__iter__.return_value = iter([])
        assert advertised_positions(conn, "Initech") == ""

    def test_titles_are_lazy(self, conn, cursor):
        titles = iter_position_titles(conn, "Globex")
        cursor.execute.assert_not_called()

        cursor.__iter__.return_value = iter([("Accountant",)])
        assert list(titles) == ["Accountant"]
