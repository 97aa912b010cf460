# services/edge_functions/migrations.py
"""
Reviewed table migrations that ensure-tables is allowed to apply.

Callers pick a migration by table name; no SQL ever comes from a request.
Each migration creates its table from the model metadata and, on
PostgreSQL, applies a fixed list of reviewed row-level security statements
scoped by the ``app.current_school_id`` session setting.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from sqlalchemy import Table, text
from sqlalchemy.ext.asyncio import AsyncSession

from services.academic.models.academic import BatchStudent

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableMigration:
    table: Table
    postgres_statements: Tuple[str, ...] = ()


def _batch_policy(name: str, command: str, clause: str) -> str:
    return f"""
    DO $$
    BEGIN
      IF NOT EXISTS (
        SELECT 1 FROM pg_policies
        WHERE tablename = 'batch_students' AND policyname = '{name}'
      ) THEN
        CREATE POLICY "{name}" ON public.batch_students FOR {command}
        {clause} (
          EXISTS (
            SELECT 1 FROM public.batches
            WHERE public.batches.id = public.batch_students.batch_id
            AND public.batches.school_id = current_setting('app.current_school_id', true)
          )
        );
      END IF;
    END $$;
    """


MIGRATIONS: Dict[str, TableMigration] = {
    "batch_students": TableMigration(
        table=BatchStudent.__table__,
        postgres_statements=(
            "ALTER TABLE public.batch_students ENABLE ROW LEVEL SECURITY",
            _batch_policy("School admins can view student assignments", "SELECT", "USING"),
            _batch_policy("School admins can insert student assignments", "INSERT", "WITH CHECK"),
            _batch_policy("School admins can update student assignments", "UPDATE", "USING"),
            _batch_policy("School admins can delete student assignments", "DELETE", "USING"),
        ),
    ),
}


def get_migration(table_name: str) -> Optional[TableMigration]:
    return MIGRATIONS.get(table_name)


async def apply_migration(db: AsyncSession, migration: TableMigration) -> None:
    """Create the table if needed, then run its reviewed statements. Does not commit."""
    connection = await db.connection()
    await connection.run_sync(lambda sync_conn: migration.table.create(sync_conn, checkfirst=True))
    if connection.dialect.name == "postgresql":
        for statement in migration.postgres_statements:
            await connection.execute(text(statement))
    LOGGER.info("Ensured table %s", migration.table.name)
