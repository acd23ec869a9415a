import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from .errors import ConfigError


class Mutation(Enum):
    """Kind of child-table mutation reported to a maintainer"""
    INSERT = "INSERT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class CountSpec:
    """
    Describes a denormalized child count:
    parent.<count_column> == number of child rows where child.<child_fk> == parent.<parent_key>
    """
    schema: str
    parent_table: str
    parent_key: str
    count_column: str
    child_table: str
    child_fk: str

    @property
    def parent(self):
        return sql.Identifier(self.schema, self.parent_table)

    @property
    def child(self):
        return sql.Identifier(self.schema, self.child_table)

    def routine(self, suffix: str):
        """Qualified name of a trigger function owned by this count"""
        return sql.Identifier(self.schema, self.trigger_name(suffix))

    def trigger_name(self, suffix: str) -> str:
        return f"{self.child_table}_{self.count_column}_{suffix}"

    def names(self) -> dict:
        """Identifiers shared by every statement built for this count"""
        return {
            "parent": self.parent,
            "child": self.child,
            "pk": sql.Identifier(self.parent_key),
            "fk": sql.Identifier(self.child_fk),
            "count": sql.Identifier(self.count_column),
            "check": sql.Identifier(f"{self.parent_table}_{self.count_column}_check")
        }


TOTAL_SKILLS = CountSpec(
    schema="staff",
    parent_table="applicant",
    parent_key="anumber",
    count_column="total_skills",
    child_table="spossessed",
    child_fk="anumber"
)

# Trigger name suffixes per strategy; installing one strategy drops all of them first
STATEMENT_TRIGGERS = ("stmt_insert", "stmt_delete")
ROW_TRIGGERS = ("row_change",)


def lock_parents(cur, spec: CountSpec, parent_ids) -> list:
    """
    Take row locks on the given parents in ascending key order so that
    concurrent writers of the same parent serialize and never deadlock
    """

    ids = sorted(set(parent_ids))
    if not ids:
        return []

    cur.execute(
        sql.SQL("SELECT {pk} FROM {parent} WHERE {pk} = ANY(%s) ORDER BY {pk} FOR NO KEY UPDATE").format(**spec.names()),
        (ids,)
    )
    return ids


class CountMaintainer(ABC):
    """
    Abstract base class for the strategies keeping a derived child count in sync.
    Concrete strategies decide how a mutation is turned into recompute work
    and which database triggers mirror it.
    """

    name: str

    def __init__(self, spec: CountSpec = TOTAL_SKILLS):
        self.spec = spec

    def ensure_column(self, cur):
        """Adds the derived column to the parent table if it is missing"""
        cur.execute(sql.SQL("""
            ALTER TABLE {parent}
            ADD COLUMN IF NOT EXISTS {count} INTEGER NOT NULL DEFAULT 0
            CONSTRAINT {check} CHECK ({count} >= 0)
        """).format(**self.spec.names()))

    def backfill(self, cur) -> int:
        """Recomputes the count of every parent; returns the number of parents updated"""
        cur.execute(sql.SQL("""
            UPDATE {parent} p
            SET {count} = COALESCE((
                SELECT COUNT(*)
                FROM {child} c
                WHERE c.{fk} = p.{pk}
            ), 0)
        """).format(**self.spec.names()))

        logging.info(f"Back-filled {self.spec.parent_table}.{self.spec.count_column} for {cur.rowcount} rows")
        return cur.rowcount

    def verify(self, cur) -> list[dict]:
        """Parents whose stored count differs from the actual number of child rows"""
        query = sql.SQL("""
            SELECT p.{pk} AS parent_id,
                   p.{count} AS stored,
                   COUNT(c.{fk}) AS actual
            FROM {parent} p
            LEFT JOIN {child} c ON c.{fk} = p.{pk}
            GROUP BY p.{pk}, p.{count}
            HAVING p.{count} IS DISTINCT FROM COUNT(c.{fk})
            ORDER BY p.{pk}
        """).format(**self.spec.names())

        with cur.connection.cursor(cursor_factory=RealDictCursor) as dict_cur:
            dict_cur.execute(query)
            drift = [dict(row) for row in dict_cur.fetchall()]

        for row in drift:
            logging.warning(
                f"Count drift on {self.spec.parent_table} {row['parent_id']}: "
                f"stored {row['stored']}, actual {row['actual']}"
            )
        return drift

    def drop_triggers(self, cur):
        """Removes the database triggers of both strategies"""
        names = self.spec.names()
        for suffix in STATEMENT_TRIGGERS + ROW_TRIGGERS:
            cur.execute(sql.SQL("DROP TRIGGER IF EXISTS {trigger} ON {child}").format(
                trigger=sql.Identifier(self.spec.trigger_name(suffix)), child=names["child"]
            ))
        for suffix in ("stmt", "row"):
            cur.execute(sql.SQL("DROP FUNCTION IF EXISTS {routine}()").format(
                routine=self.spec.routine(suffix)
            ))

    def installed_strategy(self, cur):
        """Name of the strategy whose triggers exist on the child table, None when there are none"""
        cur.execute(
            "SELECT tgname FROM pg_trigger WHERE tgrelid = to_regclass(%s) AND NOT tgisinternal",
            (f"{self.spec.schema}.{self.spec.child_table}",)
        )
        names = {name for (name,) in cur.fetchall()}

        for strategy, suffixes in (("statement", STATEMENT_TRIGGERS), ("row", ROW_TRIGGERS)):
            if any(self.spec.trigger_name(suffix) in names for suffix in suffixes):
                return strategy
        return None

    def install_triggers(self, cur):
        """Installs this strategy's database triggers, replacing any existing ones"""
        self.drop_triggers(cur)
        self._create_triggers(cur)
        logging.info(f"Installed {self.name}-level triggers on {self.spec.schema}.{self.spec.child_table}")

    @abstractmethod
    def after_mutation(self, cur, op: Mutation, rows: list):
        """Called once per mutating statement with the affected child rows"""
        pass

    @abstractmethod
    def _create_triggers(self, cur):
        """Create trigger function and trigger(s) for this strategy"""
        pass


class StatementCountMaintainer(CountMaintainer):
    """Recomputes every parent touched by a statement in one batched update"""

    name = "statement"

    def on_child_mutation_batch(self, cur, mutated_parent_ids) -> int:
        """
        Sets the count of each parent in the changed set to the number of its
        child rows. Runs once per statement however many rows it touched.
        """

        ids = sorted({pid for pid in mutated_parent_ids if pid is not None})
        if not ids:
            return 0

        lock_parents(cur, self.spec, ids)
        cur.execute(sql.SQL("""
            UPDATE {parent} p
            SET {count} = (
                SELECT COUNT(*)
                FROM {child} c
                WHERE c.{fk} = p.{pk}
            )
            WHERE p.{pk} = ANY(%s)
        """).format(**self.spec.names()), (ids,))

        return cur.rowcount

    def after_mutation(self, cur, op, rows):
        self.on_child_mutation_batch(cur, (row[self.spec.child_fk] for row in rows))

    def _create_triggers(self, cur):
        names = self.spec.names()
        routine = self.spec.routine("stmt")

        # The transition table holds exactly the rows of the firing statement
        cur.execute(sql.SQL("""
            CREATE OR REPLACE FUNCTION {routine}()
            RETURNS TRIGGER AS
            $$
            BEGIN
                PERFORM 1 FROM {parent}
                WHERE {pk} IN (SELECT {fk} FROM changed_rows)
                ORDER BY {pk}
                FOR NO KEY UPDATE;

                UPDATE {parent} p
                SET {count} = (
                    SELECT COUNT(*)
                    FROM {child} c
                    WHERE c.{fk} = p.{pk}
                )
                WHERE p.{pk} IN (SELECT {fk} FROM changed_rows);

                RETURN NULL;
            END;
            $$ LANGUAGE plpgsql
        """).format(routine=routine, **names))

        # Transition tables allow a single event per trigger
        for suffix, event, image in (
            ("stmt_insert", "INSERT", "NEW"),
            ("stmt_delete", "DELETE", "OLD")
        ):
            cur.execute(sql.SQL("""
                CREATE TRIGGER {trigger}
                AFTER {event} ON {child}
                REFERENCING {image} TABLE AS changed_rows
                FOR EACH STATEMENT
                EXECUTE FUNCTION {routine}()
            """).format(
                trigger=sql.Identifier(self.spec.trigger_name(suffix)),
                event=sql.SQL(event),
                image=sql.SQL(image),
                child=names["child"],
                routine=routine
            ))


class RowCountMaintainer(CountMaintainer):
    """Recomputes the single parent of each affected child row"""

    name = "row"

    def on_child_mutation_row(self, cur, op: Mutation, child_row) -> int:
        """
        Recomputes the count of the parent referenced by child_row,
        the post-image for an insert or the pre-image for a delete
        """

        if not isinstance(op, Mutation):
            raise ValueError(f"Unsupported mutation: {op!r}")

        parent_id = child_row[self.spec.child_fk]
        if parent_id is None:
            return 0

        lock_parents(cur, self.spec, [parent_id])
        cur.execute(sql.SQL("""
            UPDATE {parent}
            SET {count} = (
                SELECT COUNT(*)
                FROM {child}
                WHERE {fk} = %s
            )
            WHERE {pk} = %s
        """).format(**self.spec.names()), (parent_id, parent_id))

        return cur.rowcount

    def after_mutation(self, cur, op, rows):
        for row in rows:
            self.on_child_mutation_row(cur, op, row)

    def _create_triggers(self, cur):
        names = self.spec.names()
        routine = self.spec.routine("row")

        cur.execute(sql.SQL("""
            CREATE OR REPLACE FUNCTION {routine}()
            RETURNS TRIGGER AS
            $$
            BEGIN
                -- For INSERT operations
                IF (TG_OP = 'INSERT') THEN
                    PERFORM 1 FROM {parent} WHERE {pk} = NEW.{fk} FOR NO KEY UPDATE;
                    UPDATE {parent} SET {count} = (
                        SELECT COUNT(*) FROM {child} WHERE {fk} = NEW.{fk}
                    )
                    WHERE {pk} = NEW.{fk};

                -- For DELETE operations
                ELSIF (TG_OP = 'DELETE') THEN
                    PERFORM 1 FROM {parent} WHERE {pk} = OLD.{fk} FOR NO KEY UPDATE;
                    UPDATE {parent} SET {count} = (
                        SELECT COUNT(*) FROM {child} WHERE {fk} = OLD.{fk}
                    )
                    WHERE {pk} = OLD.{fk};
                END IF;

                RETURN NULL;
            END;
            $$ LANGUAGE plpgsql
        """).format(routine=routine, **names))

        cur.execute(sql.SQL("""
            CREATE TRIGGER {trigger}
            AFTER INSERT OR DELETE ON {child}
            FOR EACH ROW
            EXECUTE FUNCTION {routine}()
        """).format(
            trigger=sql.Identifier(self.spec.trigger_name("row_change")),
            child=names["child"],
            routine=routine
        ))


MAINTAINERS = {
    StatementCountMaintainer.name: StatementCountMaintainer,
    RowCountMaintainer.name: RowCountMaintainer
}


def make_maintainer(name: str, spec: CountSpec = TOTAL_SKILLS) -> CountMaintainer:
    """Builds the maintainer registered under the given strategy name"""
    try:
        return MAINTAINERS[name](spec)
    except KeyError:
        raise ConfigError(f"Unknown count strategy '{name}', expected one of {sorted(MAINTAINERS)}") from None
