class SchemaManager:
    """Schema managment class for DDL operations"""
    def __init__(self, conn):
        self.conn = conn

    def create_schema(self):
        """Creates schema: staff in database if not exists"""
        with self.conn.cursor() as cur:
            cur.execute("CREATE SCHEMA IF NOT EXISTS staff;")

        self.conn.commit()

    def drop_schema(self):
        """Drops schema: staff with every object inside it"""
        with self.conn.cursor() as cur:
            cur.execute("DROP SCHEMA IF EXISTS staff CASCADE;")

        self.conn.commit()

    def create_tables(self):
        """Recreates tables inside staff schema"""
        with self.conn.cursor() as cur:
            # 1. Deleting tables if exists, where dependent tables go first
            for table in (
                "applies", "spossessed", "skill", "applicant", "position", "employer",
                "salary_log", "assignment", "project", "employee", "department"
            ):
                cur.execute(f"DROP TABLE IF EXISTS staff.{table} CASCADE")

            # 2. Company tables
            cur.execute("""
                CREATE TABLE staff.department (
                    dept_id SERIAL PRIMARY KEY,
                    name VARCHAR(50) NOT NULL UNIQUE,
                    manager VARCHAR(50),
                    budget DECIMAL(12,2) NOT NULL CHECK (budget > 0)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.employee (
                    emp_id SERIAL PRIMARY KEY,
                    first_name VARCHAR(50) NOT NULL,
                    last_name VARCHAR(50) NOT NULL,
                    dept_id INT REFERENCES staff.department(dept_id),
                    hire_date DATE NOT NULL,
                    salary DECIMAL(10,2) NOT NULL CHECK (salary >= 0)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.project (
                    project_id SERIAL PRIMARY KEY,
                    title VARCHAR(100) NOT NULL,
                    budget DECIMAL(12,2) NOT NULL CHECK (budget > 0),
                    dept_id INT REFERENCES staff.department(dept_id)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.assignment (
                    emp_id INT REFERENCES staff.employee(emp_id),
                    project_id INT REFERENCES staff.project(project_id),
                    hours_worked DECIMAL(5,2) NOT NULL CHECK (hours_worked >= 0),
                    PRIMARY KEY (emp_id, project_id)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.salary_log (
                    log_id SERIAL PRIMARY KEY,
                    emp_id INT,
                    old_salary DECIMAL(10,2),
                    new_salary DECIMAL(10,2),
                    change_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # 3. Recruitment tables
            cur.execute("""
                CREATE TABLE staff.employer (
                    ename VARCHAR(50) PRIMARY KEY,
                    city VARCHAR(50)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.position (
                    pnumber INT PRIMARY KEY,
                    title VARCHAR(100) NOT NULL,
                    ename VARCHAR(50) NOT NULL REFERENCES staff.employer(ename),
                    salary DECIMAL(10,2) CHECK (salary >= 0),
                    bonus DECIMAL(10,2) CHECK (bonus >= 0)
                )
            """)

            # total_skills is added by the count maintainer
            cur.execute("""
                CREATE TABLE staff.applicant (
                    anumber INT PRIMARY KEY,
                    fname VARCHAR(50),
                    lname VARCHAR(50) NOT NULL,
                    phone VARCHAR(20)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.skill (
                    sname VARCHAR(50) PRIMARY KEY,
                    description VARCHAR(200)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.spossessed (
                    anumber INT NOT NULL REFERENCES staff.applicant(anumber) ON DELETE CASCADE,
                    sname VARCHAR(50) NOT NULL REFERENCES staff.skill(sname),
                    slevel INT NOT NULL CHECK (slevel BETWEEN 1 AND 10),
                    PRIMARY KEY (anumber, sname)
                )
            """)

            cur.execute("""
                CREATE TABLE staff.applies (
                    anumber INT REFERENCES staff.applicant(anumber) ON DELETE CASCADE,
                    pnumber INT REFERENCES staff.position(pnumber),
                    appdate DATE NOT NULL DEFAULT CURRENT_DATE,
                    PRIMARY KEY (anumber, pnumber)
                )
            """)

        self.conn.commit()

    def create_functions(self):
        """Creates stored functions used by the reports"""
        with self.conn.cursor() as cur:
            # Department budget minus the budgets of its projects
            cur.execute("""
                CREATE OR REPLACE FUNCTION staff.remaining_dept_budget(dept INT)
                RETURNS DECIMAL AS
                $$
                DECLARE
                    spent DECIMAL := 0;
                BEGIN
                    SELECT COALESCE(SUM(budget), 0) INTO spent
                    FROM staff.project
                    WHERE dept_id = dept;
                    RETURN (SELECT budget FROM staff.department WHERE dept_id = dept) - spent;
                END;
                $$ LANGUAGE plpgsql
            """)

            cur.execute("""
                CREATE OR REPLACE FUNCTION staff.dept_salary_avg(dept_input INT)
                RETURNS DECIMAL(10,2) AS
                $$
                DECLARE
                    avg_salary DECIMAL(10,2);
                BEGIN
                    SELECT AVG(salary) INTO avg_salary
                    FROM staff.employee
                    WHERE dept_id = dept_input;
                    RETURN avg_salary;
                END;
                $$ LANGUAGE plpgsql
            """)

        self.conn.commit()

    def create_triggers(self):
        """
        Creates the salary triggers:
        - every salary change is written to salary_log
        - every new assignment gives the employee a 1% raise
        """
        with self.conn.cursor() as cur:
            cur.execute("""
                CREATE OR REPLACE FUNCTION staff.log_salary_change()
                RETURNS TRIGGER AS
                $$
                BEGIN
                    IF NEW.salary <> OLD.salary THEN
                        INSERT INTO staff.salary_log (emp_id, old_salary, new_salary)
                        VALUES (OLD.emp_id, OLD.salary, NEW.salary);
                    END IF;
                    RETURN NEW;
                END;
                $$ LANGUAGE plpgsql
            """)
            cur.execute("DROP TRIGGER IF EXISTS salary_update_trigger ON staff.employee")
            cur.execute("""
                CREATE TRIGGER salary_update_trigger
                AFTER UPDATE OF salary ON staff.employee
                FOR EACH ROW
                EXECUTE FUNCTION staff.log_salary_change()
            """)

            cur.execute("""
                CREATE OR REPLACE FUNCTION staff.increase_salary()
                RETURNS TRIGGER AS
                $$
                BEGIN
                    UPDATE staff.employee
                    SET salary = ROUND(salary * 1.01, 2)
                    WHERE emp_id = NEW.emp_id;
                    RETURN NEW;
                END;
                $$ LANGUAGE plpgsql
            """)
            cur.execute("DROP TRIGGER IF EXISTS salary_raise ON staff.assignment")
            cur.execute("""
                CREATE TRIGGER salary_raise
                AFTER INSERT ON staff.assignment
                FOR EACH ROW
                EXECUTE FUNCTION staff.increase_salary()
            """)

        self.conn.commit()

    def create_views(self):
        """Creates read-only views over employees and their assignments"""
        with self.conn.cursor() as cur:
            cur.execute("""
                CREATE OR REPLACE VIEW staff.employee_workload AS
                SELECT e.emp_id, e.first_name, e.last_name,
                       COUNT(a.project_id) AS projects_count,
                       COALESCE(SUM(a.hours_worked), 0) AS total_hours
                FROM staff.employee e
                LEFT JOIN staff.assignment a ON e.emp_id = a.emp_id
                GROUP BY e.emp_id, e.first_name, e.last_name
            """)

            cur.execute("""
                CREATE OR REPLACE VIEW staff.employee_summary AS
                SELECT e.emp_id,
                       e.first_name || ' ' || e.last_name AS employee_name,
                       d.name AS department,
                       e.salary,
                       COALESCE(SUM(a.hours_worked), 0) AS total_hours_worked
                FROM staff.employee e
                LEFT JOIN staff.department d ON e.dept_id = d.dept_id
                LEFT JOIN staff.assignment a ON e.emp_id = a.emp_id
                GROUP BY e.emp_id, d.name
            """)

        self.conn.commit()

    def create_indexes(self):
        """Creates indexes for optimization"""
        # Indexes based on usage patterns:
        # 1. assignment.project_id: joins from projects to their assignments
        # 2. employee.dept_id: per-department aggregation and window partitions
        # 3. position.ename: advertised positions per employer
        # spossessed.anumber is covered by the primary key prefix

        index_queries = [
            "CREATE INDEX IF NOT EXISTS idx_assignment_project ON staff.assignment(project_id)",
            "CREATE INDEX IF NOT EXISTS idx_employee_dept ON staff.employee(dept_id)",
            "CREATE INDEX IF NOT EXISTS idx_position_employer ON staff.position(ename, title)"
        ]

        with self.conn.cursor() as cur:
            for query in index_queries:
                cur.execute(query)

        self.conn.commit()
