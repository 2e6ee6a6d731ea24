"""DDL for the blog table, shared by the master and every replica.

Replicas receive rows through logical replication, which does not carry
DDL, so the same statement is applied on both sides.
"""

from __future__ import annotations

BLOGS_TABLE = "blogs"

CREATE_BLOGS_TABLE = f"""
    CREATE TABLE IF NOT EXISTS {BLOGS_TABLE} (
        id SERIAL PRIMARY KEY,
        data JSONB NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
"""

# Range of a PostgreSQL bigint; ids outside it cannot match any row.
BIGINT_MIN = -(2**63)
BIGINT_MAX = 2**63 - 1
