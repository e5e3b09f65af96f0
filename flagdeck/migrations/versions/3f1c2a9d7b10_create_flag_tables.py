from alembic import op


# revision identifiers, used by Alembic.
revision = "create_flag_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create environments, flags, targeting_rules and exposures tables."""
    op.execute(
        """
        CREATE TABLE environments (
            id UUID PRIMARY KEY,
            key TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """
    )

    # State keys reference environments.key; they are validated by the
    # application, not by a foreign key.
    op.execute(
        """
        CREATE TABLE flags (
            id UUID PRIMARY KEY,
            key TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            state JSONB NOT NULL DEFAULT '{}',
            tags TEXT[] NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """
    )

    op.execute(
        """
        CREATE TABLE targeting_rules (
            id UUID PRIMARY KEY,
            flag_id UUID NOT NULL REFERENCES flags(id) ON DELETE CASCADE,
            position BIGSERIAL NOT NULL,
            type TEXT NOT NULL,
            attribute TEXT NOT NULL,
            operator TEXT NOT NULL,
            rule_values TEXT[] NOT NULL DEFAULT '{}',
            environment TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """
    )
    op.execute(
        "CREATE INDEX targeting_rules_flag_position_idx "
        "ON targeting_rules (flag_id, position);"
    )

    op.execute(
        """
        CREATE TABLE exposures (
            id UUID PRIMARY KEY,
            flag_key TEXT NOT NULL,
            environment TEXT NOT NULL,
            user_id TEXT NOT NULL,
            occurred_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            client_id TEXT NOT NULL DEFAULT 'unknown'
        );
        """
    )
    op.execute(
        "CREATE INDEX exposures_flag_env_time_idx "
        "ON exposures (flag_key, environment, occurred_at);"
    )


def downgrade():
    op.execute("DROP TABLE IF EXISTS exposures;")
    op.execute("DROP TABLE IF EXISTS targeting_rules;")
    op.execute("DROP TABLE IF EXISTS flags;")
    op.execute("DROP TABLE IF EXISTS environments;")
