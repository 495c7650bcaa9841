# /services/db_schema_creation.py
import os
import logging
import glob
import psycopg2
from psycopg2 import sql
from typing import List

logger = logging.getLogger(__name__)

TABLES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'tables')


def split_statements(sql_content: str) -> List[str]:
    """
    Split a SQL script on top-level semicolons.

    Semicolons inside $$ ... $$ function bodies, quoted strings and
    -- line comments do not end a statement.
    """
    statements = []
    current = []
    in_dollar = False
    in_quote = False
    in_comment = False
    i = 0
    length = len(sql_content)

    while i < length:
        char = sql_content[i]
        pair = sql_content[i:i + 2]

        if in_comment:
            current.append(char)
            if char == '\n':
                in_comment = False
            i += 1
            continue

        if not in_dollar and not in_quote and pair == '--':
            in_comment = True
            current.append(pair)
            i += 2
            continue

        if not in_quote and pair == '$$':
            in_dollar = not in_dollar
            current.append(pair)
            i += 2
            continue

        if not in_dollar and char == "'":
            in_quote = not in_quote

        if char == ';' and not in_dollar and not in_quote:
            statement = ''.join(current).strip()
            if _has_code(statement):
                statements.append(statement)
            current = []
        else:
            current.append(char)
        i += 1

    statement = ''.join(current).strip()
    if _has_code(statement):
        statements.append(statement)
    return statements


def _has_code(statement: str) -> bool:
    lines = [line.strip() for line in statement.splitlines()]
    return any(line and not line.startswith('--') for line in lines)


class DatabaseSchemaService:
    def __init__(self, db_url, tables_dir: str = TABLES_DIR):
        """
        Initialize the database schema service.

        Args:
            db_url: PostgreSQL connection string
            tables_dir: directory holding the numbered *.sql files
        """
        self.db_url = db_url
        self.tables_dir = tables_dir

    def create_tables(self, schema_name: str) -> None:
        """
        Create tables, views and procedures from the SQL files if they don't
        exist yet. Only touches the specified schema, never public.

        Args:
            schema_name: The schema name to create tables in
        """
        if schema_name.lower() == 'public':
            logger.warning("Tables creation in 'public' schema is not allowed. Please specify a custom schema.")
            return

        try:
            conn = psycopg2.connect(self.db_url, connect_timeout=10)
            conn.autocommit = True
            logger.debug("Database connection established successfully")

            try:
                with conn.cursor() as cursor:
                    if not self._schema_exists(cursor, schema_name):
                        logger.debug(f"Creating schema '{schema_name}'")
                        cursor.execute(sql.SQL("CREATE SCHEMA {}").format(sql.Identifier(schema_name)))

                    # invitations is created first; its presence means the bootstrap already ran
                    if self._table_exists(cursor, schema_name, 'invitations'):
                        logger.debug(f"Table {schema_name}.invitations already exists. Skipping schema creation.")
                        return

                    sql_files = self._sql_files()
                    if not sql_files:
                        logger.warning(f"No SQL files found in {self.tables_dir}")
                        return

                    for sql_file in sql_files:
                        file_name = os.path.basename(sql_file)
                        logger.debug(f"Processing SQL file: {file_name}")

                        with open(sql_file, 'r') as f:
                            sql_content = f.read()

                        sql_content = sql_content.replace('public.', f'{schema_name}.')

                        try:
                            for statement in split_statements(sql_content):
                                cursor.execute(statement)
                            logger.debug(f"Processed SQL file for {schema_name}.{self._extract_table_name(file_name)}")
                        except Exception as e:
                            logger.error(f"Error applying {file_name}: {str(e)}")
                            raise
            finally:
                conn.close()
                logger.debug("Database connection closed")

        except psycopg2.OperationalError as e:
            logger.error(f"Database connection error: {str(e)}")
            raise

    def _sql_files(self) -> List[str]:
        return sorted(glob.glob(os.path.join(self.tables_dir, '*.sql')))

    def _schema_exists(self, cursor, schema_name: str) -> bool:
        """Check if a schema exists in the database"""
        cursor.execute(
            "SELECT EXISTS(SELECT 1 FROM information_schema.schemata WHERE schema_name = %s)",
            (schema_name,)
        )
        return cursor.fetchone()[0]

    def _table_exists(self, cursor, schema_name: str, table_name: str) -> bool:
        """Check if a table exists in the specific schema"""
        cursor.execute(
            "SELECT EXISTS(SELECT 1 FROM information_schema.tables WHERE table_schema = %s AND table_name = %s)",
            (schema_name, table_name)
        )
        return cursor.fetchone()[0]

    def _extract_table_name(self, file_name: str) -> str:
        """01_invitations.sql becomes invitations"""
        parts = os.path.splitext(file_name)[0].split('_', 1)
        return parts[1] if len(parts) > 1 else parts[0]


def get_db_schema_service(db_url: str) -> DatabaseSchemaService:
    return DatabaseSchemaService(db_url)
