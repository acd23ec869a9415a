import json
import logging

# Tables in foreign-key order with the columns read from the data file
TABLES = {
    "department": ("dept_id", "name", "manager", "budget"),
    "employee": ("emp_id", "first_name", "last_name", "dept_id", "hire_date", "salary"),
    "project": ("project_id", "title", "budget", "dept_id"),
    "assignment": ("emp_id", "project_id", "hours_worked"),
    "employer": ("ename", "city"),
    "position": ("pnumber", "title", "ename", "salary", "bonus"),
    "applicant": ("anumber", "fname", "lname", "phone"),
    "skill": ("sname", "description"),
    "spossessed": ("anumber", "sname", "slevel"),
    "applies": ("anumber", "pnumber", "appdate")
}

# SERIAL columns whose sequences follow explicitly loaded ids
SERIALS = {
    "department": "dept_id",
    "employee": "emp_id",
    "project": "project_id"
}


class DataLoader:
    """Class for extracting and loading data a.k.a ETL processing"""
    def __init__(self, conn):
        self.conn = conn

    def load_data(self, data_path):
        """Loads a JSON document of {table: [rows]} into the staff schema"""
        with open(data_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        unknown = set(data) - set(TABLES)
        if unknown:
            raise ValueError(f"Unknown tables in {data_path}: {', '.join(sorted(unknown))}")

        with self.conn.cursor() as cur:
            for table, columns in TABLES.items():
                rows = data.get(table, [])
                if not rows:
                    continue

                values = [tuple(row.get(col) for col in columns) for row in rows]
                placeholders = ", ".join(["%s"] * len(columns))
                cur.executemany(
                    f"INSERT INTO staff.{table} ({', '.join(columns)}) VALUES ({placeholders})",
                    values)
                logging.info(f"Loaded {len(rows)} rows into staff.{table}")

            for table, column in SERIALS.items():
                cur.execute(
                    f"SELECT setval(pg_get_serial_sequence('staff.{table}', '{column}'), "
                    f"COALESCE((SELECT MAX({column}) FROM staff.{table}), 0) + 1, false)")

        self.conn.commit()
