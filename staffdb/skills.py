import logging
from typing import Iterable, Optional

from psycopg2.extras import RealDictCursor, execute_values

from .counts import CountMaintainer, Mutation, TOTAL_SKILLS, lock_parents


class SkillWriter:
    """
    Single write path for possessed skills. Every mutation runs in its own
    transaction together with the recompute of the applicants' skill counts.
    With no maintainer the database triggers are trusted to keep counts in sync.
    """

    def __init__(self, conn, maintainer: Optional[CountMaintainer] = None):
        self.conn = conn
        self.maintainer = maintainer
        self.spec = maintainer.spec if maintainer else TOTAL_SKILLS

    def add_skills(self, rows: Iterable[tuple]) -> list[dict]:
        """Inserts (anumber, sname, slevel) rows; returns the inserted rows"""
        rows = list(rows)
        if not rows:
            return []

        sql = """
            INSERT INTO staff.spossessed (anumber, sname, slevel)
            VALUES %s
            RETURNING anumber, sname, slevel
        """
        return self.__mutate(Mutation.INSERT, [row[0] for row in rows], sql, rows)

    def remove_skills(self, pairs: Iterable[tuple]) -> list[dict]:
        """Deletes (anumber, sname) pairs; returns the deleted rows"""
        pairs = list(pairs)
        if not pairs:
            return []

        sql = """
            DELETE FROM staff.spossessed sp
            USING (VALUES %s) AS gone (anumber, sname)
            WHERE sp.anumber = gone.anumber AND sp.sname = gone.sname
            RETURNING sp.anumber, sp.sname, sp.slevel
        """
        return self.__mutate(Mutation.DELETE, [pair[0] for pair in pairs], sql, pairs)

    def clear_skills(self, anumber: int) -> list[dict]:
        """Deletes every skill of one applicant; returns the deleted rows"""
        sql = """
            DELETE FROM staff.spossessed
            WHERE anumber = %s
            RETURNING anumber, sname, slevel
        """
        return self.__mutate(Mutation.DELETE, [anumber], sql, None)

    def __mutate(self, op: Mutation, parent_ids: list, sql: str, values: Optional[list]) -> list[dict]:
        """
        Runs one mutating statement inside a transaction:
        - locks the affected applicants
        - executes the statement, collecting post-images (insert) or pre-images (delete)
        - lets the maintainer recompute counts on the same cursor
        - commits, or rolls everything back and re-raises
        """

        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                lock_parents(cur, self.spec, parent_ids)

                if values is None:
                    cur.execute(sql, tuple(parent_ids))
                    affected = [dict(row) for row in cur.fetchall()]
                else:
                    # One page keeps the whole batch in a single statement
                    affected = [
                        dict(row) for row in
                        execute_values(cur, sql, values, page_size=len(values), fetch=True)
                    ]

                if self.maintainer is not None:
                    self.maintainer.after_mutation(cur, op, affected)

            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

        logging.info(f"{op.value} of {len(affected)} possessed skill row(s) for applicants {sorted(set(parent_ids))}")
        return affected
