SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at REAL NOT NULL
);

-- Users: owner identities
CREATE TABLE IF NOT EXISTS users (
    id                TEXT PRIMARY KEY,
    email             TEXT,
    first_name        TEXT,
    last_name         TEXT,
    profile_image_url TEXT,
    api_key           TEXT NOT NULL DEFAULT '',
    created_at        REAL NOT NULL,
    updated_at        REAL NOT NULL
);

-- Mining rigs: simulated devices
CREATE TABLE IF NOT EXISTS mining_rigs (
    id                TEXT PRIMARY KEY,
    owner_id          TEXT NOT NULL,
    name              TEXT NOT NULL,
    model             TEXT NOT NULL,
    cryptocurrency    TEXT NOT NULL CHECK (cryptocurrency IN ('BTC', 'ETH')),
    hash_rate         REAL NOT NULL CHECK (hash_rate > 0),
    hash_rate_unit    TEXT NOT NULL,
    power_consumption REAL NOT NULL CHECK (power_consumption > 0),
    is_active         INTEGER NOT NULL DEFAULT 1,
    daily_earnings    REAL NOT NULL DEFAULT 0.0,
    created_at        REAL NOT NULL
);

-- Portfolio balances: one row per (owner, cryptocurrency)
CREATE TABLE IF NOT EXISTS portfolio_balances (
    id             TEXT PRIMARY KEY,
    owner_id       TEXT NOT NULL,
    cryptocurrency TEXT NOT NULL,
    amount         REAL NOT NULL DEFAULT 0.0,
    last_updated   REAL NOT NULL
);

-- Mining transactions: append-only history
CREATE TABLE IF NOT EXISTS mining_transactions (
    id             TEXT PRIMARY KEY,
    owner_id       TEXT NOT NULL,
    rig_id         TEXT,
    type           TEXT NOT NULL,
    cryptocurrency TEXT NOT NULL,
    amount         REAL NOT NULL,
    usd_value      REAL NOT NULL,
    timestamp      REAL NOT NULL
);

-- Exchange connections: one row per (owner, exchange)
CREATE TABLE IF NOT EXISTS exchange_connections (
    id            TEXT PRIMARY KEY,
    owner_id      TEXT NOT NULL,
    exchange      TEXT NOT NULL,
    is_connected  INTEGER NOT NULL DEFAULT 0,
    api_key_id    TEXT,
    settings_json TEXT NOT NULL DEFAULT '{}',
    last_sync     REAL
);

-- Payments: user-declared crypto payments to the system address
CREATE TABLE IF NOT EXISTS payments (
    id               TEXT PRIMARY KEY,
    owner_id         TEXT NOT NULL,
    network          TEXT NOT NULL CHECK (network IN ('ethereum', 'polygon')),
    amount           REAL NOT NULL CHECK (amount > 0),
    currency         TEXT NOT NULL,
    to_address       TEXT NOT NULL,
    from_address     TEXT,
    transaction_hash TEXT,
    status           TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'confirmed', 'failed')),
    purpose          TEXT,
    timestamp        REAL NOT NULL
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_users_api_key ON users(api_key);
CREATE INDEX IF NOT EXISTS idx_rigs_owner ON mining_rigs(owner_id);
CREATE UNIQUE INDEX IF NOT EXISTS idx_balances_owner_crypto ON portfolio_balances(owner_id, cryptocurrency);
CREATE INDEX IF NOT EXISTS idx_transactions_owner_ts ON mining_transactions(owner_id, timestamp);
CREATE UNIQUE INDEX IF NOT EXISTS idx_exchanges_owner_exchange ON exchange_connections(owner_id, exchange);
CREATE INDEX IF NOT EXISTS idx_payments_owner_ts ON payments(owner_id, timestamp);

-- Mining history is immutable
CREATE TRIGGER IF NOT EXISTS trg_transactions_no_update
BEFORE UPDATE ON mining_transactions
BEGIN
    SELECT RAISE(ABORT, 'mining transactions are immutable');
END;

CREATE TRIGGER IF NOT EXISTS trg_transactions_no_delete
BEFORE DELETE ON mining_transactions
BEGIN
    SELECT RAISE(ABORT, 'mining transactions are immutable');
END;
"""
