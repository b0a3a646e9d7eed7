import pytest

from dbscaffold.models import (
    SCAFFOLDING_CONNECTION_STRING,
    DatabaseSchema,
    DatabaseTable,
    DatabaseColumn,
    DatabasePrimaryKey,
    DatabaseForeignKey,
    ReverseEngineerOptions,
    CodeGenerationOptions,
)
from dbscaffold.services import RelationalModelBuilder, Jinja2CodeGenerator, default_context_name


def _generate(schema, **options):
    options.setdefault("model_namespace", "blog_models")
    entity_model = RelationalModelBuilder().build(schema, ReverseEngineerOptions())
    return Jinja2CodeGenerator().generate(entity_model, schema, CodeGenerationOptions(**options))


def _files(scaffolded_model):
    return {f.path: f.code for f in scaffolded_model.all_files}


def _assert_compiles(scaffolded_model):
    for scaffolded_file in scaffolded_model.all_files:
        compile(scaffolded_file.code, scaffolded_file.path, "exec")


def test_default_context_name():
    assert default_context_name("blogging") == "BloggingContext"
    assert default_context_name("order_db") == "OrderDbContext"
    assert default_context_name("ShopContext") == "ShopContext"
    assert default_context_name(None) == "ModelContext"
    assert default_context_name("123") == "ModelContext"


def test_generates_context_base_and_entity_files(blog_schema):
    result = _generate(blog_schema, connection_string="sqlite:///blog.db")

    assert result.context_file.path == "blogging_context.py"
    assert [f.path for f in result.additional_files] == ["base.py", "blog.py", "post.py"]
    _assert_compiles(result)

    files = _files(result)
    assert "class Base(DeclarativeBase):" in files["base.py"]

    context = files["blogging_context.py"]
    assert "class BloggingContext(Session):" in context
    assert "from blog_models.base import Base" in context
    assert "from blog_models.blog import Blog" in context
    assert "from blog_models.post import Post" in context
    assert 'CONNECTION_STRING = "sqlite:///blog.db"' in context
    assert "return self.query(Post)" in context


def test_entity_module_contents(blog_schema):
    files = _files(_generate(blog_schema))

    post = files["post.py"]
    assert "from typing import Optional" in post
    assert "from sqlalchemy import ForeignKey, Integer, Text" in post
    assert "from sqlalchemy.orm import Mapped, mapped_column, relationship" in post
    assert "class Post(Base):" in post
    assert '__tablename__ = "posts"' in post
    assert "id: Mapped[int] = mapped_column(Integer, primary_key=True)" in post
    assert 'blog_id: Mapped[int] = mapped_column(Integer, ForeignKey("blogs.id"))' in post
    assert "title: Mapped[Optional[str]] = mapped_column(Text)" in post
    assert ('blog: Mapped[Optional["Blog"]] = relationship('
            '"Blog", back_populates="posts", foreign_keys="[Post.blog_id]")') in post

    blog = files["blog.py"]
    assert 'Index("ix_blogs_url", "url", unique=True),' in blog
    assert "url: Mapped[str] = mapped_column(String(200))" in blog
    assert ('posts: Mapped[List["Post"]] = relationship('
            '"Post", back_populates="blog", foreign_keys="[Post.blog_id]")') in blog


@pytest.mark.parametrize("connection_string", ["sqlite:///blog.db", "Name=Blogging"])
def test_connection_string_embedded_verbatim_without_marker(blog_schema, connection_string):
    context = _generate(blog_schema, connection_string=connection_string).context_file.code

    assert f'CONNECTION_STRING = "{connection_string}"' in context
    assert "WARNING" not in context


def test_schema_override_connection_string(blog_schema):
    blog_schema.annotations[SCAFFOLDING_CONNECTION_STRING] = "sqlite:///override.db"

    context = _generate(blog_schema, connection_string="sqlite:///blog.db").context_file.code

    assert 'CONNECTION_STRING = "sqlite:///override.db"' in context
    assert "sqlite:///blog.db" not in context
    assert "# WARNING" not in context


def test_suppress_on_configuring(blog_schema):
    result = _generate(blog_schema, connection_string="sqlite:///blog.db", suppress_on_configuring=True)
    context = result.context_file.code

    _assert_compiles(result)
    assert "CONNECTION_STRING" not in context
    assert "create_engine" not in context
    assert "# WARNING" not in context
    assert "def __init__(self, bind, **kwargs):" in context


def test_context_name_and_directory(blog_schema):
    result = _generate(blog_schema, context_name="BlogSession", context_dir="..\\Data")

    assert result.context_file.path == "../Data/blog_session.py"
    assert "class BlogSession(Session):" in result.context_file.code


def test_keyless_table_renders_as_table():
    schema = DatabaseSchema(database_name="audit")
    schema.add_table(DatabaseTable(
        name="audit_log",
        columns=[DatabaseColumn("event", "TEXT", nullable=False), DatabaseColumn("logged_at", "TIMESTAMP")],
    ))

    result = _generate(schema, model_namespace="audit_models")
    _assert_compiles(result)
    files = _files(result)

    module = files["audit_log.py"]
    assert "from sqlalchemy import Column, DateTime, Table, Text" in module
    assert 'audit_log = Table(' in module
    assert 'Column("event", Text, nullable=False),' in module
    assert 'Column("logged_at", DateTime, nullable=True),' in module
    assert "from audit_models.audit_log import audit_log" in files["audit_context.py"]
    assert "return self.query(audit_log)" in files["audit_context.py"]


def test_schema_comment_defaults_and_renamed_columns():
    schema = DatabaseSchema(database_name="sales")
    schema.add_table(DatabaseTable(
        name="customers",
        schema="sales",
        columns=[DatabaseColumn("id", "INTEGER", nullable=False)],
        primary_key=DatabasePrimaryKey(["id"]),
    ))
    schema.add_table(DatabaseTable(
        name="orders",
        schema="sales",
        comment="Customer orders",
        columns=[
            DatabaseColumn("id", "INTEGER", nullable=False, autoincrement=False),
            DatabaseColumn("CustomerId", "INTEGER", nullable=False),
            DatabaseColumn("Order Date", "DATE", default_sql="CURRENT_DATE", comment="Placed on"),
            DatabaseColumn("total", "DECIMAL(10, 2)", computed_sql="price * quantity"),
        ],
        primary_key=DatabasePrimaryKey(["id"]),
        foreign_keys=[DatabaseForeignKey(["CustomerId"], "customers", ["id"], on_delete="CASCADE")],
    ))

    result = _generate(schema)
    _assert_compiles(result)
    order = _files(result)["order.py"]

    assert '{"schema": "sales", "comment": "Customer orders"},' in order
    assert "id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)" in order
    assert ('customer_id: Mapped[int] = mapped_column("CustomerId", Integer, '
            'ForeignKey("sales.customers.id", ondelete="CASCADE"))') in order
    assert ('order_date: Mapped[Optional[datetime.date]] = mapped_column("Order Date", Date, '
            'server_default=text("CURRENT_DATE"), comment="Placed on")') in order
    assert 'mapped_column(Numeric(10, 2), Computed("price * quantity"))' in order
    assert "import datetime" in order
    assert "import decimal" in order


def test_data_annotations_can_be_disabled():
    schema = DatabaseSchema()
    schema.add_table(DatabaseTable(
        name="notes",
        comment="Free text notes",
        columns=[
            DatabaseColumn("id", "INTEGER", nullable=False),
            DatabaseColumn("body", "TEXT", default_sql="''", comment="Body"),
        ],
        primary_key=DatabasePrimaryKey(["id"]),
    ))

    result = _generate(schema, use_data_annotations=False)
    note = _files(result)["note.py"]

    assert "server_default" not in note
    assert "comment" not in note
    assert "__table_args__" not in note


def test_composite_foreign_key_uses_constraint():
    schema = DatabaseSchema()
    schema.add_table(DatabaseTable(
        name="products",
        columns=[DatabaseColumn("vendor", "VARCHAR(10)", nullable=False),
                 DatabaseColumn("code", "VARCHAR(10)", nullable=False)],
        primary_key=DatabasePrimaryKey(["vendor", "code"]),
    ))
    schema.add_table(DatabaseTable(
        name="stock",
        columns=[DatabaseColumn("id", "INTEGER", nullable=False),
                 DatabaseColumn("vendor", "VARCHAR(10)", nullable=False),
                 DatabaseColumn("code", "VARCHAR(10)", nullable=False)],
        primary_key=DatabasePrimaryKey(["id"]),
        foreign_keys=[DatabaseForeignKey(["vendor", "code"], "products", ["vendor", "code"], name="fk_stock_products")],
    ))

    result = _generate(schema)
    _assert_compiles(result)
    stock = _files(result)["stock.py"]

    assert ('ForeignKeyConstraint(["vendor", "code"], ["products.vendor", "products.code"], '
            'name="fk_stock_products"),') in stock
    assert 'foreign_keys="[Stock.vendor, Stock.code]"' in stock


def test_generation_is_deterministic(blog_schema):
    assert _generate(blog_schema) == _generate(blog_schema)
