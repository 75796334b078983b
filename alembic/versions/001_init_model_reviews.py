from alembic import op
import sqlalchemy as sa

revision = "0001_init_model_reviews"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "authors",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
    )

    op.create_table(
        "models",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("author_id", sa.Integer, sa.ForeignKey("authors.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, index=True),
        sa.Column("arch", sa.String(64), nullable=False, server_default=""),
        sa.Column("num_parameters", sa.Float, nullable=False, server_default="0"),
        sa.Column("remote_id", sa.String(255), nullable=True),
        sa.Column("gguf_id", sa.String(255), nullable=True),
        sa.Column("average", sa.Float, nullable=True),
        sa.Column("last_modified_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("author_id", "slug", name="uq_models_author_slug"),
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("model_id", sa.Integer, sa.ForeignKey("models.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("author_email", sa.String(320), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(128), nullable=False, unique=True, index=True),
    )

    op.create_table(
        "human_feedback",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("num_id", sa.Integer, nullable=False, unique=True, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("model_id", sa.Integer, sa.ForeignKey("models.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("model_name", sa.String(255), nullable=True),
        sa.Column("quality", sa.Integer, nullable=True),
        sa.Column("nsfw", sa.Boolean, nullable=True),
    )
    op.create_index("ix_human_feedback_created", "human_feedback", ["created_at"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "human_feedback_id",
            sa.String(64),
            sa.ForeignKey("human_feedback.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("index", sa.Integer, nullable=False),
        sa.Column("role", sa.String(32), nullable=True),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
    )

    op.create_table(
        "human_feedback_tags",
        sa.Column(
            "human_feedback_id",
            sa.String(64),
            sa.ForeignKey("human_feedback.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("tag_id", sa.Integer, sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    )


def downgrade():
    op.drop_table("human_feedback_tags")
    op.drop_table("messages")
    op.drop_index("ix_human_feedback_created", table_name="human_feedback")
    op.drop_table("human_feedback")
    op.drop_table("tags")
    op.drop_table("reviews")
    op.drop_table("models")
    op.drop_table("authors")
