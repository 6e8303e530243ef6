"""Create points and votes tables.

Votes carry a unique index on (voter_id, point_id); the vote ledger relies
on it to reject duplicate votes atomically.

Revision ID: f1a2b3c4d5e6
Revises:
Create Date: 2026-10-17
"""

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "f1a2b3c4d5e6"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS points (
            id SERIAL NOT NULL PRIMARY KEY,
            longitude DOUBLE PRECISION NOT NULL,
            latitude DOUBLE PRECISION NOT NULL,
            body TEXT NOT NULL,
            icon VARCHAR(64) NOT NULL DEFAULT '',
            created_by VARCHAR(255) NOT NULL,
            hidden BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_points_created_by ON points (created_by);
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_points_created_at ON points (created_at);
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_points_hidden_created ON points (hidden, created_at);
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS votes (
            id SERIAL NOT NULL PRIMARY KEY,
            voter_id VARCHAR(255) NOT NULL,
            point_id INTEGER NOT NULL REFERENCES points(id) ON DELETE CASCADE,
            value SMALLINT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_votes_voter_point UNIQUE (voter_id, point_id),
            CONSTRAINT ck_votes_value CHECK (value IN (1, -1))
        );
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_votes_point_id ON votes (point_id);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS votes;")
    op.execute("DROP TABLE IF EXISTS points;")
