"""
Sample challenges provisioned on first startup
"""
import json

EMPLOYEES_SCHEMA = """
CREATE TABLE employees (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  email TEXT NOT NULL,
  department TEXT NOT NULL,
  salary REAL NOT NULL,
  hire_date TEXT NOT NULL
);

INSERT INTO employees (id, name, email, department, salary, hire_date)
VALUES
  (1, 'John Smith', 'john@example.com', 'Engineering', 75000, '2020-01-15'),
  (2, 'Jane Doe', 'jane@example.com', 'Marketing', 65000, '2019-05-20'),
  (3, 'Bob Johnson', 'bob@example.com', 'Engineering', 80000, '2018-11-10'),
  (4, 'Alice Williams', 'alice@example.com', 'HR', 60000, '2021-03-05'),
  (5, 'Charlie Brown', 'charlie@example.com', 'Marketing', 70000, '2020-08-22');
"""

JOINS_SCHEMA = """
CREATE TABLE departments (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  location TEXT NOT NULL
);

CREATE TABLE employees (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  email TEXT NOT NULL,
  department_id INTEGER NOT NULL,
  salary REAL NOT NULL,
  hire_date TEXT NOT NULL,
  FOREIGN KEY (department_id) REFERENCES departments (id)
);

INSERT INTO departments (id, name, location)
VALUES
  (1, 'Engineering', 'Building A'),
  (2, 'Marketing', 'Building B'),
  (3, 'HR', 'Building C');

INSERT INTO employees (id, name, email, department_id, salary, hire_date)
VALUES
  (1, 'John Smith', 'john@example.com', 1, 75000, '2020-01-15'),
  (2, 'Jane Doe', 'jane@example.com', 2, 65000, '2019-05-20'),
  (3, 'Bob Johnson', 'bob@example.com', 1, 80000, '2018-11-10'),
  (4, 'Alice Williams', 'alice@example.com', 3, 60000, '2021-03-05'),
  (5, 'Charlie Brown', 'charlie@example.com', 2, 70000, '2020-08-22');
"""

EMPLOYEES = [
    {"id": 1, "name": "John Smith", "email": "john@example.com", "department": "Engineering", "salary": 75000, "hire_date": "2020-01-15"},
    {"id": 2, "name": "Jane Doe", "email": "jane@example.com", "department": "Marketing", "salary": 65000, "hire_date": "2019-05-20"},
    {"id": 3, "name": "Bob Johnson", "email": "bob@example.com", "department": "Engineering", "salary": 80000, "hire_date": "2018-11-10"},
    {"id": 4, "name": "Alice Williams", "email": "alice@example.com", "department": "HR", "salary": 60000, "hire_date": "2021-03-05"},
    {"id": 5, "name": "Charlie Brown", "email": "charlie@example.com", "department": "Marketing", "salary": 70000, "hire_date": "2020-08-22"},
]

LOCATIONS = {"Engineering": "Building A", "Marketing": "Building B", "HR": "Building C"}

EMPLOYEES_WITH_DEPARTMENTS = [
    {
        "id": e["id"],
        "name": e["name"],
        "email": e["email"],
        "salary": e["salary"],
        "hire_date": e["hire_date"],
        "department_name": e["department"],
        "location": LOCATIONS[e["department"]],
    }
    for e in EMPLOYEES
]


SAMPLE_CHALLENGES = [
    {
        "title": "SELECT Basics",
        "description": "Learn how to use the SELECT statement to retrieve data from a table.",
        "difficulty": "easy",
        "category": "basics",
        "initial_code": "-- Write a query to select all columns from the employees table",
        "schema_sql": EMPLOYEES_SCHEMA,
        "order": 1,
        "test_cases": [
            {
                "input": "SELECT * FROM employees;",
                "expected_output": json.dumps(EMPLOYEES),
                "is_hidden": False,
            }
        ],
        "hints": [
            {"text": "Use the * symbol to select all columns from a table.", "cost": 5},
        ],
        "reward_xp": 10,
    },
    {
        "title": "WHERE Clause",
        "description": "Learn how to filter data using the WHERE clause.",
        "difficulty": "easy",
        "category": "basics",
        "initial_code": "-- Write a query to select all employees from the Engineering department",
        "schema_sql": EMPLOYEES_SCHEMA,
        "order": 2,
        "test_cases": [
            {
                "input": "SELECT * FROM employees WHERE department = 'Engineering';",
                "expected_output": json.dumps([e for e in EMPLOYEES if e["department"] == "Engineering"]),
                "is_hidden": False,
            }
        ],
        "hints": [
            {"text": "Use the WHERE clause with department = 'Engineering'", "cost": 5},
        ],
        "reward_xp": 15,
    },
    {
        "title": "Basic Joins",
        "description": "Learn how to join tables to retrieve related data.",
        "difficulty": "medium",
        "category": "joins",
        "initial_code": (
            "-- Write a query to join the employees and departments tables "
            "to show all employees with their department information"
        ),
        "schema_sql": JOINS_SCHEMA,
        "order": 3,
        "test_cases": [
            {
                "input": (
                    "SELECT e.id, e.name, e.email, e.salary, e.hire_date, "
                    "d.name as department_name, d.location\n"
                    "FROM employees e\n"
                    "JOIN departments d ON e.department_id = d.id;"
                ),
                "expected_output": json.dumps(EMPLOYEES_WITH_DEPARTMENTS),
                "is_hidden": False,
            }
        ],
        "hints": [
            {
                "text": "Use the JOIN keyword to connect the employees and departments tables on the department_id field.",
                "cost": 5,
            },
            {
                "text": "Make sure to use table aliases to distinguish between columns from different tables.",
                "cost": 10,
            },
        ],
        "reward_xp": 25,
    },
]
