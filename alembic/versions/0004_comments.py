from alembic import op

revision = "0004_comments"
down_revision = "0003_donations"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS comments (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
      user_id UUID NOT NULL REFERENCES users(id),
      text TEXT NOT NULL CHECK (length(btrim(text)) > 0),
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_comments_campaign ON comments(campaign_id, created_at DESC);
    """
    )


def downgrade():
    op.execute("DROP TABLE IF EXISTS comments;")
