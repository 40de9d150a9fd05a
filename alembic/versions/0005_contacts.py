from alembic import op

revision = "0005_contacts"
down_revision = "0004_comments"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    DO $$
    BEGIN
      IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'contact_status') THEN
        CREATE TYPE contact_status AS ENUM ('unread','in-progress','resolved');
      END IF;
    END$$;

    CREATE TABLE IF NOT EXISTS contacts (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      name TEXT NOT NULL,
      email CITEXT NOT NULL,
      subject TEXT NOT NULL,
      message TEXT NOT NULL,
      status contact_status NOT NULL DEFAULT 'unread',
      user_id UUID NULL REFERENCES users(id) ON DELETE SET NULL,
      admin_response TEXT NULL,
      responded_by UUID NULL REFERENCES users(id),
      responded_at TIMESTAMPTZ NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_contacts_status_created ON contacts(status, created_at DESC);
    CREATE INDEX IF NOT EXISTS idx_contacts_user ON contacts(user_id, created_at DESC);
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS contacts;
    DROP TYPE IF EXISTS contact_status;
    """
    )
