# nomadigma/database/queries.py
from typing import Any, Dict

async def insert_row(conn, table: str, values: Dict[str, Any]):
    """INSERT `values` and return the stored row"""
    columns = list(values)
    placeholders = [f"${i}" for i in range(1, len(columns) + 1)]
    return await conn.fetchrow(
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({', '.join(placeholders)}) RETURNING *",
        *values.values()
    )

async def update_row(conn, table: str, row_id: str, values: Dict[str, Any]):
    """UPDATE the columns in `values` and return the stored row"""
    query_parts = []
    params = []
    param_count = 1

    for key, value in values.items():
        query_parts.append(f"{key} = ${param_count}")
        params.append(value)
        param_count += 1

    params.append(row_id)
    return await conn.fetchrow(f"""
        UPDATE {table}
        SET {', '.join(query_parts + ['updated_at = NOW()'])}
        WHERE id = ${param_count}::uuid
        RETURNING *
    """, *params)
