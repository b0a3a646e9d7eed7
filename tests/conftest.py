import sqlite3

import pytest

from dbscaffold.core import ReverseEngineerScaffolder, ScaffoldingServices
from dbscaffold.models import (
    SCAFFOLDING_CONNECTION_STRING,
    DatabaseSchema,
    DatabaseTable,
    DatabaseColumn,
    DatabasePrimaryKey,
    DatabaseForeignKey,
    DatabaseIndex,
)
from dbscaffold.services import ConnectionResolver, SchemaIntrospector, RelationalModelBuilder, Jinja2CodeGenerator


SHOP_DDL = [
    '''
    CREATE TABLE customers (
        customer_id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        email TEXT UNIQUE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''',
    '''
    CREATE TABLE products (
        product_id INTEGER PRIMARY KEY AUTOINCREMENT,
        product_name VARCHAR(100) NOT NULL,
        price DECIMAL(10,2) NOT NULL
    )
    ''',
    '''
    CREATE TABLE orders (
        order_id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL,
        order_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        total_amount DECIMAL(10,2),
        FOREIGN KEY (customer_id) REFERENCES customers (customer_id)
    )
    ''',
    '''
    CREATE TABLE order_items (
        order_item_id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id INTEGER NOT NULL,
        product_id INTEGER NOT NULL,
        quantity INTEGER NOT NULL,
        FOREIGN KEY (order_id) REFERENCES orders (order_id),
        FOREIGN KEY (product_id) REFERENCES products (product_id)
    )
    ''',
    '''
    CREATE TABLE audit_log (
        event TEXT NOT NULL,
        logged_at TIMESTAMP
    )
    ''',
    'CREATE INDEX ix_orders_order_date ON orders (order_date)',
    '''
    CREATE VIEW order_summary AS
    SELECT o.order_id, c.first_name, o.total_amount
    FROM orders o JOIN customers c ON c.customer_id = o.customer_id
    ''',
]


@pytest.fixture
def shop_db(tmp_path):
    """Path to a small SQLite e-commerce database."""
    db_path = tmp_path / "shop.db"
    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()
        for statement in SHOP_DDL:
            cursor.execute(statement)
        cursor.execute("INSERT INTO customers (first_name, email) VALUES (?, ?)", ("John", "john@example.com"))
        cursor.execute("INSERT INTO customers (first_name, email) VALUES (?, ?)", ("Jane", "jane@example.com"))
        cursor.execute("INSERT INTO products (product_name, price) VALUES (?, ?)", ("Widget", 9.99))
        cursor.execute("INSERT INTO orders (customer_id, total_amount) VALUES (?, ?)", (1, 19.98))
        cursor.execute("INSERT INTO order_items (order_id, product_id, quantity) VALUES (?, ?, ?)", (1, 1, 2))
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture
def shop_url(shop_db):
    return f"sqlite:///{shop_db}"


def make_blog_schema() -> DatabaseSchema:
    """Hand-built schema with two related tables."""
    schema = DatabaseSchema(database_name="blogging")
    schema.add_table(DatabaseTable(
        name="blogs",
        columns=[
            DatabaseColumn("id", "INTEGER", nullable=False),
            DatabaseColumn("url", "VARCHAR(200)", nullable=False),
        ],
        primary_key=DatabasePrimaryKey(["id"]),
        indexes=[DatabaseIndex(["url"], name="ix_blogs_url", unique=True)],
    ))
    schema.add_table(DatabaseTable(
        name="posts",
        columns=[
            DatabaseColumn("id", "INTEGER", nullable=False),
            DatabaseColumn("blog_id", "INTEGER", nullable=False),
            DatabaseColumn("title", "TEXT"),
        ],
        primary_key=DatabasePrimaryKey(["id"]),
        foreign_keys=[DatabaseForeignKey(["blog_id"], "blogs", ["id"], name="fk_posts_blogs")],
    ))
    return schema


@pytest.fixture
def blog_schema():
    return make_blog_schema()


class FakeConnectionResolver(ConnectionResolver):
    """Resolves every reference to a fixed value."""

    def __init__(self, resolved_connection_string: str):
        self.resolved_connection_string = resolved_connection_string

    def resolve(self, reference: str) -> str:
        return self.resolved_connection_string


class PassThroughConnectionResolver(ConnectionResolver):
    def resolve(self, reference: str) -> str:
        return reference


class FakeSchemaIntrospector(SchemaIntrospector):
    """Records the connection string it was called with."""

    def __init__(self, scaffolded_connection_string=None, schema_factory=make_blog_schema):
        self.connection_string = None
        self.scaffolded_connection_string = scaffolded_connection_string
        self.schema_factory = schema_factory

    def introspect(self, connection_string, options):
        self.connection_string = connection_string
        schema = self.schema_factory()
        if self.scaffolded_connection_string is not None:
            schema.annotations[SCAFFOLDING_CONNECTION_STRING] = self.scaffolded_connection_string
        return schema


def create_scaffolder(resolver=None, introspector=None) -> ReverseEngineerScaffolder:
    return ReverseEngineerScaffolder(ScaffoldingServices(
        connection_resolver=resolver or PassThroughConnectionResolver(),
        schema_introspector=introspector or FakeSchemaIntrospector(),
        model_builder=RelationalModelBuilder(),
        code_generator=Jinja2CodeGenerator(),
    ))
