from alembic import op

revision = "0002_campaigns"
down_revision = "0001_users"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    DO $$
    BEGIN
      IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'campaign_status') THEN
        CREATE TYPE campaign_status AS ENUM ('pending','approved','rejected','completed');
      END IF;
    END$$;

    CREATE TABLE IF NOT EXISTS campaigns (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      title TEXT NOT NULL,
      description TEXT NOT NULL,
      category TEXT NOT NULL
        CHECK (category IN ('education','medical','environment','technology','community','other')),
      goal_amount NUMERIC(12,2) NOT NULL CHECK (goal_amount > 0),
      raised_amount NUMERIC(12,2) NOT NULL DEFAULT 0 CHECK (raised_amount >= 0),
      deadline TIMESTAMPTZ NOT NULL,
      status campaign_status NOT NULL DEFAULT 'pending',
      creator_id UUID NOT NULL REFERENCES users(id),
      fund_utilization_plan JSONB NOT NULL,
      media_urls TEXT[] NOT NULL DEFAULT '{}',
      comment_ids UUID[] NOT NULL DEFAULT '{}',
      moderation_note TEXT NULL,
      moderated_by UUID NULL REFERENCES users(id),
      moderated_at TIMESTAMPTZ NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE INDEX IF NOT EXISTS idx_campaigns_status_created ON campaigns(status, created_at DESC);
    CREATE INDEX IF NOT EXISTS idx_campaigns_creator ON campaigns(creator_id);
    CREATE INDEX IF NOT EXISTS idx_campaigns_category ON campaigns(category);
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS campaigns;
    DROP TYPE IF EXISTS campaign_status;
    """
    )
