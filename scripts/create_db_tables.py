"""Database setup script - creates the signature request tables."""

import asyncio
import os

import asyncpg

# Database connection settings
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")

CREATE_EXTENSION_SQL = "CREATE EXTENSION IF NOT EXISTS pgcrypto;"

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS signature_requests (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title VARCHAR(255),
    message TEXT,
    sender_email VARCHAR(320),
    sender_name VARCHAR(255),
    document_url TEXT,
    status VARCHAR(50) NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'completed')),
    sign_in_order BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS recipients (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    request_id UUID NOT NULL REFERENCES signature_requests(id) ON DELETE CASCADE,
    email VARCHAR(320) NOT NULL,
    name VARCHAR(255),
    role VARCHAR(20) NOT NULL CHECK (role IN ('signer', 'reviewer', 'cc')),
    signing_order_index INTEGER,
    status VARCHAR(50) NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'signed')),
    signed_at TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS recipient_tokens (
    id BIGSERIAL PRIMARY KEY,
    recipient_id UUID NOT NULL REFERENCES recipients(id) ON DELETE CASCADE,
    email VARCHAR(320) NOT NULL,
    token_hash CHAR(64) NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS signature_fields (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    request_id UUID NOT NULL REFERENCES signature_requests(id) ON DELETE CASCADE,
    recipient_id UUID REFERENCES recipients(id) ON DELETE CASCADE,
    type VARCHAR(20) NOT NULL CHECK (type IN ('signature', 'initial', 'date')),
    page_number INTEGER NOT NULL DEFAULT 1,
    x DOUBLE PRECISION NOT NULL,
    y DOUBLE PRECISION NOT NULL,
    width DOUBLE PRECISION NOT NULL,
    height DOUBLE PRECISION NOT NULL,
    value TEXT,
    signed_at TIMESTAMPTZ
);
"""

CREATE_INDEXES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_recipients_request_id ON recipients(request_id);",
    "CREATE INDEX IF NOT EXISTS idx_recipient_tokens_recipient_id ON recipient_tokens(recipient_id);",
    "CREATE INDEX IF NOT EXISTS idx_signature_fields_request_recipient ON signature_fields(request_id, recipient_id);",
    "CREATE INDEX IF NOT EXISTS idx_signature_requests_status ON signature_requests(status);",
]


async def create_tables():
    """Create tables and indexes."""
    print(f"Connecting to {DB_HOST}:{DB_PORT}/{DB_NAME}...")
    conn = await asyncpg.connect(
        host=DB_HOST,
        port=int(DB_PORT),
        database=DB_NAME,
        user=DB_USER,
        password=DB_PASSWORD,
    )
    try:
        await conn.execute(CREATE_EXTENSION_SQL)
        await conn.execute(CREATE_TABLES_SQL)
        print("Tables created (or already exist)")

        for index_sql in CREATE_INDEXES_SQL:
            await conn.execute(index_sql)
        print(f"{len(CREATE_INDEXES_SQL)} indexes created")
    finally:
        await conn.close()


if __name__ == "__main__":
    asyncio.run(create_tables())
