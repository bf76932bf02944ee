"""
Shared fixtures: an in-memory sqlite3 database behind the same fetch()
contract as DatabaseConnection, with the INFORMATION_SCHEMA queries answered
from sqlite's own catalog.
"""

import re
import sqlite3

import pytest

from conformance_grader.errors import DatabaseConnectionError, QueryError

SCHEMA = "ltimindtree_db"

DDL = """
CREATE TABLE Admin (
    id VARCHAR(10),
    admin_name VARCHAR(50),
    email_id VARCHAR(50),
    password VARCHAR(50)
);
CREATE TABLE User (
    id VARCHAR(10) PRIMARY KEY,
    user_name VARCHAR(50),
    email_id VARCHAR(50),
    password VARCHAR(50),
    gender CHAR(1),
    city VARCHAR(50),
    mobile_number CHAR(10),
    zipcode CHAR(6)
);
CREATE TABLE Product (
    id VARCHAR(10),
    product_name VARCHAR(50),
    category VARCHAR(50),
    price FLOAT,
    quantity SMALLINT,
    offers VARCHAR(10),
    description VARCHAR(100)
);
CREATE TABLE Payment_method (
    id VARCHAR(10),
    account_holder_name VARCHAR(50),
    account_number CHAR(16),
    date_of_payment DATE
);
"""

PRODUCTS = [
    ("1", "Laptop", "Electronics", 50000.00, 10, "10%", None),
    ("2", "Desk", "Furniture", 15000.00, 3, "2%", "Computer desk"),
    ("3", "Bedsheet", "HomeCare", 3000.00, 5, "0%", "Cotton"),
    ("4", "Biscuits", "Grocery", 45.56, 20, "1%", None),
    ("5", "EarPhones", "Electronics", 1000.00, 3, "0.5%", "Wire less"),
]

USERS = [
    ("u1", "Mansi", "Mansi@HCL.com", "secret", "f", "Pune", "1111111111", "123456"),
    ("u2", "Ravi", "ravi@hcl.com", "secret", "M", "Delhi", "2222222222", "654321"),
]

_RE_TYPE_LEN = re.compile(r'\(.*\)$')


class SqliteHandle:
    """Test double for DatabaseConnection backed by sqlite3."""

    def __init__(self, conn: sqlite3.Connection, schema: str = SCHEMA):
        self.conn = conn
        self.schema = schema
        self.calls = []

    def _real_table(self, name):
        row = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND LOWER(name) = LOWER(?)",
            (name,)).fetchone()
        return row[0] if row else None

    def _table_info(self, name):
        real = self._real_table(name)
        if real is None:
            return []
        return self.conn.execute(f'PRAGMA table_info("{real}")').fetchall()

    def _information_schema(self, sql, params):
        if "INFORMATION_SCHEMA.SCHEMATA" in sql:
            return [{'schema_name': self.schema}] if params[0] == self.schema else []
        if params[0] != self.schema:
            return []
        table = params[1]
        if "INFORMATION_SCHEMA.TABLE_CONSTRAINTS" in sql:
            pk = sorted((r for r in self._table_info(table) if r[5] > 0), key=lambda r: r[5])
            return [{'column_name': r[1]} for r in pk]
        if "INFORMATION_SCHEMA.TABLES" in sql:
            real = self._real_table(table)
            return [{'table_name': real}] if real else []
        if "INFORMATION_SCHEMA.COLUMNS" in sql:
            # MySQL reports DATA_TYPE lower-case and without length
            return [{'column_name': r[1], 'data_type': _RE_TYPE_LEN.sub('', r[2]).lower()}
                    for r in self._table_info(table)]
        raise AssertionError(f"Unexpected metadata query: {sql}")

    def fetch(self, sql, *params):
        self.calls.append((sql, params))
        if "INFORMATION_SCHEMA" in sql:
            return self._information_schema(sql, params)
        try:
            cursor = self.conn.execute(sql, params)
        except sqlite3.Error as e:
            raise QueryError(sql, str(e)) from e
        if cursor.description is None:
            return []
        columns = [d[0].lower() for d in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]


class CaseSensitiveHandle(SqliteHandle):
    """SqliteHandle that rejects quoted table names not spelled as in the catalog,
    like MySQL with lower_case_table_names=0."""

    _RE_FROM = re.compile(r'FROM `([^`]+)`')

    def fetch(self, sql, *params):
        if "INFORMATION_SCHEMA" not in sql:
            tables = {row[0] for row in self.conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'")}
            for name in self._RE_FROM.findall(sql):
                if name not in tables:
                    self.calls.append((sql, params))
                    raise QueryError(sql, f"Table '{self.schema}.{name}' doesn't exist")
        return super().fetch(sql, *params)


class BrokenHandle:
    """Handle whose connection drops after `ok_calls` successful fetches."""

    def __init__(self, inner, ok_calls: int = 0):
        self.inner = inner
        self.ok_calls = ok_calls

    def fetch(self, sql, *params):
        if self.ok_calls <= 0:
            raise DatabaseConnectionError("Communication link failure")
        self.ok_calls -= 1
        return self.inner.fetch(sql, *params)


@pytest.fixture
def sqlite_conn():
    conn = sqlite3.connect(":memory:")
    conn.executescript(DDL)
    conn.executemany("INSERT INTO Product VALUES (?, ?, ?, ?, ?, ?, ?)", PRODUCTS)
    conn.executemany("INSERT INTO User VALUES (?, ?, ?, ?, ?, ?, ?, ?)", USERS)
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def handle(sqlite_conn):
    return SqliteHandle(sqlite_conn)


@pytest.fixture
def lowercase_product(sqlite_conn):
    """Recreate Product as `product`, seeded with the same rows."""
    ddl = DDL[DDL.index("CREATE TABLE Product"):DDL.index("CREATE TABLE Payment_method")]
    sqlite_conn.execute("DROP TABLE Product")
    sqlite_conn.execute(ddl.replace("CREATE TABLE Product", "CREATE TABLE product").rstrip().rstrip(";"))
    sqlite_conn.executemany("INSERT INTO product VALUES (?, ?, ?, ?, ?, ?, ?)", PRODUCTS)
    sqlite_conn.commit()
    return sqlite_conn


@pytest.fixture
def query_file(tmp_path):
    path = tmp_path / "queries.sql"
    path.write_text(
        "SELECT product_name FROM Product WHERE price < 2000 AND LOWER(category) = 'electronics';\n"
        "ALTER TABLE User ADD PRIMARY KEY (id);\n",
        encoding="utf-8",
    )
    return path
