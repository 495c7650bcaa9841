"""Unit tests for the schema bootstrap."""

import inspect
import os
import re
from unittest.mock import MagicMock, patch

from services import connections
from services.db_schema_creation import TABLES_DIR, DatabaseSchemaService, split_statements


FUNCTION_SQL = """
-- connections
create table if not exists public.t (id int);

create or replace function public.f() returns void as $$
begin
  insert into public.t values (1);
  update public.t set id = 2;
end;
$$ language plpgsql;

insert into public.t values (';');
-- trailing comment; with a semicolon
"""


def test_split_statements_keeps_function_bodies_whole():
    statements = split_statements(FUNCTION_SQL)

    assert len(statements) == 3
    assert statements[0].endswith("create table if not exists public.t (id int)")
    assert statements[1].startswith("create or replace function")
    assert "update public.t set id = 2;" in statements[1]
    assert statements[2] == "insert into public.t values (';')"


def test_bundled_sql_files_parse():
    service = DatabaseSchemaService("postgresql://unused", TABLES_DIR)

    files = service._sql_files()

    assert [service._extract_table_name(f.rsplit("/", 1)[-1]) for f in files] == [
        "invitations", "user_profiles", "user_connections", "affirmations", "persons"
    ]
    for path in files:
        with open(path) as f:
            assert split_statements(f.read())


def test_public_schema_is_refused():
    with patch("services.db_schema_creation.psycopg2.connect") as connect:
        DatabaseSchemaService("postgresql://unused").create_tables("public")

    connect.assert_not_called()


def test_existing_schema_is_left_alone():
    cursor = MagicMock()
    cursor.fetchone.return_value = (True,)
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor

    with patch("services.db_schema_creation.psycopg2.connect", return_value=conn):
        DatabaseSchemaService("postgresql://unused").create_tables("pixel")

    assert cursor.execute.call_count == 2
    conn.close.assert_called_once()


def test_statements_are_applied_in_target_schema(tmp_path):
    (tmp_path / "01_things.sql").write_text("create table public.things (id int);")
    cursor = MagicMock()
    cursor.fetchone.side_effect = [(True,), (False,)]
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor

    with patch("services.db_schema_creation.psycopg2.connect", return_value=conn):
        DatabaseSchemaService("postgresql://unused", str(tmp_path)).create_tables("pixel")

    assert cursor.execute.call_args.args[0] == "create table pixel.things (id int)"


def read_bundled(name):
    with open(os.path.join(TABLES_DIR, name)) as f:
        return f.read()


def test_connection_procedures_are_all_used_and_respect_blocks():
    sql = read_bundled("03_user_connections.sql")
    source = inspect.getsource(connections)

    procedures = re.findall(r"create or replace function public\.(\w+)\(", sql)
    assert procedures == ["create_bidirectional_connection", "accept_bidirectional_connection"]
    for name in procedures:
        assert f'"{name}"' in source

    for statement in split_statements(sql)[2:]:
        assert "status <> 'blocked'" in statement
