from alembic import op

revision = "0003_donations"
down_revision = "0002_campaigns"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS donations (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
      user_id UUID NOT NULL REFERENCES users(id),
      amount NUMERIC(12,2) NOT NULL CHECK (amount > 0),
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE INDEX IF NOT EXISTS idx_donations_campaign ON donations(campaign_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_donations_user     ON donations(user_id, created_at);
    """
    )


def downgrade():
    op.execute("DROP TABLE IF EXISTS donations;")
