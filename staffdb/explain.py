import logging
from dataclasses import dataclass

from psycopg2 import sql


@dataclass
class IndexExperiment:
    """Class holding an index to try and the query whose plan it should change"""
    name: str
    table: str
    columns: tuple
    query: str
    params: tuple = ()


EXPERIMENTS = [
    IndexExperiment(
        name="applicant_fn_idx",
        table="applicant",
        columns=("fname", "lname"),
        query="""
            SELECT anumber, phone
            FROM staff.applicant
            WHERE fname IN ('Harry', 'James', 'Robin', 'Ivan')
              AND lname = 'Bond'
        """
    ),
    IndexExperiment(
        name="position_bonus_idx",
        table="position",
        columns=("bonus",),
        query="SELECT AVG(bonus) FROM staff.position"
    ),
    IndexExperiment(
        name="applies_pn_idx",
        table="applies",
        columns=("pnumber",),
        query="SELECT pnumber, COUNT(*) FROM staff.applies GROUP BY pnumber"
    )
]


class PlanInspector:
    """
    Class for index experiments: the index is created, the plan captured
    and everything rolled back so that nothing persists
    """

    def __init__(self, conn):
        self.conn = conn

    def run(self, experiment: IndexExperiment) -> list[str]:
        """Returns EXPLAIN output lines of the experiment query with its index in place"""

        create_index = sql.SQL("CREATE INDEX {name} ON {table} ({columns})").format(
            name=sql.Identifier(experiment.name),
            table=sql.Identifier("staff", experiment.table),
            columns=sql.SQL(", ").join(sql.Identifier(col) for col in experiment.columns)
        )

        try:
            with self.conn.cursor() as cur:
                # Sequential scans off for this transaction only
                cur.execute("SET LOCAL enable_seqscan = off")
                cur.execute(create_index)
                cur.execute("EXPLAIN " + experiment.query, experiment.params or None)
                plan = [line for (line,) in cur.fetchall()]
        finally:
            self.conn.rollback()

        logging.info(f"Captured plan for {experiment.name}: {plan[0] if plan else 'empty'}")
        return plan

    def run_all(self, experiments=None) -> dict:
        """Plans of all experiments keyed by index name"""
        return {exp.name: self.run(exp) for exp in (experiments or EXPERIMENTS)}
