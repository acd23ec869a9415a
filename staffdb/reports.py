from psycopg2.extras import RealDictCursor

from .positions import advertised_positions


class ReportGenerator:
    """Class for realizing DQL operations"""
    def __init__(self, conn):
        self.conn = conn

    def __fetch(self, sql, params=None):
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params)
            return [dict(row) for row in cur.fetchall()]

    def get_employee_departments(self):
        """Employee names with their department names"""
        sql = """
            SELECT e.first_name, e.last_name, d.name AS department
            FROM staff.employee e
            INNER JOIN staff.department d ON e.dept_id = d.dept_id
            ORDER BY d.name, e.emp_id
        """
        return self.__fetch(sql)

    def get_department_projects(self):
        """All departments and their projects, even if they have none"""
        sql = """
            SELECT d.name AS department, p.title AS project
            FROM staff.department d
            LEFT JOIN staff.project p ON d.dept_id = p.dept_id
            ORDER BY d.name, p.title
        """
        return self.__fetch(sql)

    def get_project_hours(self):
        """Total hours worked per project"""
        sql = """
            SELECT p.title AS project, SUM(a.hours_worked) AS total_hours
            FROM staff.project p
            INNER JOIN staff.assignment a ON p.project_id = a.project_id
            GROUP BY p.project_id, p.title
            ORDER BY p.project_id
        """
        return self.__fetch(sql)

    def get_employees_on_large_projects(self, min_budget=20000):
        """Employees working on at least one project above the given budget"""
        sql = """
            SELECT first_name, last_name
            FROM staff.employee
            WHERE emp_id IN (
                SELECT a.emp_id
                FROM staff.assignment a
                INNER JOIN staff.project p ON a.project_id = p.project_id
                WHERE p.budget > %s
            )
            ORDER BY emp_id
        """
        return self.__fetch(sql, (min_budget,))

    def get_employee_workload(self):
        """Total hours and average hours per project of every employee"""
        sql = """
            SELECT e.first_name || ' ' || e.last_name AS employee_name,
                   d.name AS department,
                   COALESCE(SUM(a.hours_worked), 0) AS total_hours,
                   COUNT(a.project_id) AS project_count,
                   CASE WHEN COUNT(a.project_id) = 0 THEN 0
                        ELSE SUM(a.hours_worked) / COUNT(a.project_id)
                   END AS avg_hours_per_project
            FROM staff.employee e
            LEFT JOIN staff.assignment a ON e.emp_id = a.emp_id
            LEFT JOIN staff.department d ON e.dept_id = d.dept_id
            GROUP BY e.emp_id, d.name
            ORDER BY d.name, total_hours DESC, e.emp_id
        """
        return self.__fetch(sql)

    def get_salary_bands(self):
        """Number of employees per department in each salary band"""
        sql = """
            SELECT d.name AS department,
                   COUNT(CASE WHEN e.salary > 80000 THEN 1 END) AS high_salary,
                   COUNT(CASE WHEN e.salary BETWEEN 60000 AND 80000 THEN 1 END) AS medium_salary,
                   COUNT(CASE WHEN e.salary < 60000 THEN 1 END) AS low_salary
            FROM staff.employee e
            LEFT JOIN staff.department d ON e.dept_id = d.dept_id
            GROUP BY d.name
            ORDER BY d.name
        """
        return self.__fetch(sql)

    def get_salary_ranking(self):
        """Salary rank and salary total of every employee within the department"""
        sql = """
            SELECT e.first_name || ' ' || e.last_name AS employee_name,
                   d.name AS department,
                   e.salary,
                   RANK() OVER (PARTITION BY e.dept_id ORDER BY e.salary DESC) AS dept_salary_rank,
                   SUM(e.salary) OVER (PARTITION BY e.dept_id) AS dept_total_salary
            FROM staff.employee e
            JOIN staff.department d ON e.dept_id = d.dept_id
            ORDER BY d.name, dept_salary_rank, e.emp_id
        """
        return self.__fetch(sql)

    def get_most_expensive_project_staff(self):
        """Employees working on the most expensive project(s)"""
        sql = """
            SELECT e.first_name || ' ' || e.last_name AS employee_name,
                   p.title AS project_title,
                   p.budget
            FROM staff.employee e
            JOIN staff.assignment a ON e.emp_id = a.emp_id
            JOIN staff.project p ON a.project_id = p.project_id
            WHERE p.budget = (SELECT MAX(budget) FROM staff.project)
            ORDER BY e.emp_id
        """
        return self.__fetch(sql)

    def get_department_salary_averages(self):
        """Average salary per department through the dept_salary_avg function"""
        sql = """
            SELECT d.name, staff.dept_salary_avg(d.dept_id) AS avg_salary
            FROM staff.department d
            ORDER BY d.dept_id
        """
        return self.__fetch(sql)

    def get_remaining_budgets(self):
        """Department budget left after its projects"""
        sql = """
            SELECT d.name, d.budget, staff.remaining_dept_budget(d.dept_id) AS remaining_budget
            FROM staff.department d
            ORDER BY d.dept_id
        """
        return self.__fetch(sql)

    def get_employee_performance(self):
        """Hours, projects and department rank of every employee"""
        sql = """
            WITH employee_hours AS (
                SELECT e.emp_id, e.first_name, e.last_name,
                       d.name AS department,
                       COALESCE(SUM(a.hours_worked), 0) AS total_hours
                FROM staff.employee e
                LEFT JOIN staff.assignment a ON e.emp_id = a.emp_id
                LEFT JOIN staff.department d ON e.dept_id = d.dept_id
                GROUP BY e.emp_id, e.first_name, e.last_name, d.name
            ),
            employee_projects AS (
                SELECT emp_id, COUNT(DISTINCT project_id) AS project_count
                FROM staff.assignment
                GROUP BY emp_id
            )
            SELECT eh.emp_id, eh.first_name, eh.last_name, eh.department,
                   eh.total_hours,
                   COALESCE(ep.project_count, 0) AS projects_count,
                   CASE WHEN COALESCE(ep.project_count, 0) = 0 THEN 0
                        ELSE eh.total_hours / ep.project_count
                   END AS avg_hours_per_project,
                   RANK() OVER (PARTITION BY eh.department ORDER BY eh.total_hours DESC) AS dept_rank,
                   SUM(eh.total_hours) OVER (PARTITION BY eh.department) AS dept_total_hours
            FROM employee_hours eh
            LEFT JOIN employee_projects ep ON eh.emp_id = ep.emp_id
            ORDER BY eh.department, dept_rank, eh.emp_id
        """
        return self.__fetch(sql)

    def get_workload_bands(self, high=40, low=20):
        """Number of employees per department with high, medium and low workload"""
        sql = """
            SELECT d.name AS department,
                   COUNT(CASE WHEN eh.total_hours > %(high)s THEN 1 END) AS high_workload_employees,
                   COUNT(CASE WHEN eh.total_hours BETWEEN %(low)s AND %(high)s THEN 1 END)
                       AS medium_workload_employees,
                   COUNT(CASE WHEN eh.total_hours < %(low)s THEN 1 END) AS low_workload_employees
            FROM staff.employee e
            LEFT JOIN staff.department d ON e.dept_id = d.dept_id
            LEFT JOIN (
                SELECT emp_id, SUM(hours_worked) AS total_hours
                FROM staff.assignment
                GROUP BY emp_id
            ) eh ON e.emp_id = eh.emp_id
            GROUP BY d.name
            ORDER BY d.name
        """
        return self.__fetch(sql, {"high": high, "low": low})

    def get_employee_summary(self):
        """Rows of the employee_summary view"""
        return self.__fetch("SELECT * FROM staff.employee_summary ORDER BY emp_id")

    def get_applicant_skill_counts(self):
        """Applicants with their maintained skill count"""
        sql = """
            SELECT anumber, fname, lname, total_skills
            FROM staff.applicant
            ORDER BY anumber
        """
        return self.__fetch(sql)

    def get_advertised_positions(self):
        """Employers with at least one position and the list of their position titles"""
        sql = """
            SELECT e.ename AS employer_name
            FROM staff.employer e
            WHERE e.ename IN (SELECT DISTINCT p.ename FROM staff.position p)
            ORDER BY e.ename
        """
        return [
            {
                "employer_name": row["employer_name"],
                "advertised_positions": advertised_positions(self.conn, row["employer_name"])
            }
            for row in self.__fetch(sql)
        ]

    def get_employers_without_positions(self):
        """Employers advertising no position"""
        sql = """
            SELECT e.ename AS employer_name
            FROM staff.employer e
            ORDER BY e.ename
        """
        return [
            row for row in self.__fetch(sql)
            if advertised_positions(self.conn, row["employer_name"]) == ""
        ]

    def all_reports(self):
        """Every report keyed by its name"""
        return {
            "employee_departments": self.get_employee_departments(),
            "department_projects": self.get_department_projects(),
            "project_hours": self.get_project_hours(),
            "employees_on_large_projects": self.get_employees_on_large_projects(),
            "employee_workload": self.get_employee_workload(),
            "salary_bands": self.get_salary_bands(),
            "salary_ranking": self.get_salary_ranking(),
            "most_expensive_project_staff": self.get_most_expensive_project_staff(),
            "department_salary_averages": self.get_department_salary_averages(),
            "remaining_budgets": self.get_remaining_budgets(),
            "employee_performance": self.get_employee_performance(),
            "workload_bands": self.get_workload_bands(),
            "employee_summary": self.get_employee_summary(),
            "applicant_skill_counts": self.get_applicant_skill_counts(),
            "advertised_positions": self.get_advertised_positions(),
            "employers_without_positions": self.get_employers_without_positions()
        }
