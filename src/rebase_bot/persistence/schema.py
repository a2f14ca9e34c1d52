"""SQLAlchemy Core table definitions for the durable epoch ledger.

All timestamps are Unix epoch floats and work identically in SQLite and PostgreSQL.
"""

from sqlalchemy import (
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
)

metadata = MetaData()

triggered_epochs = Table(
    "triggered_epochs",
    metadata,
    Column("epoch_number", Integer, primary_key=True, autoincrement=False),
    # lowercase staking wallet; each wallet has its own set of handled epochs
    Column("account", String(42), primary_key=True, default=""),
    Column("block_number", Integer, nullable=False),
    Column("recorded_at", Float, nullable=False),
)
