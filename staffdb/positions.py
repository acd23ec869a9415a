from typing import Iterable, Iterator


def join_titles(titles: Iterable[str], separator: str = "; ") -> str:
    """Folds ordered titles into one string; no titles gives an empty string"""
    joined = ""
    for title in titles:
        joined = title if not joined else joined + separator + title
    return joined


def iter_position_titles(conn, ename: str) -> Iterator[str]:
    """Yields the titles of positions advertised by an employer, ordered by title"""
    with conn.cursor() as cur:
        cur.execute(
            "SELECT title FROM staff.position WHERE ename = %s ORDER BY title",
            (ename,)
        )
        for (title,) in cur:
            yield title


def advertised_positions(conn, ename: str) -> str:
    """Semicolon-separated list of the positions advertised by an employer"""
    return join_titles(iter_position_titles(conn, ename))
