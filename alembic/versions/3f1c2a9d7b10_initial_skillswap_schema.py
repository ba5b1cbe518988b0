"""initial skillswap schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-17 09:12:44.318205

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("linkedin_profile", sa.String(length=300), nullable=False),
        sa.Column("avatar", sa.String(length=500), nullable=False),
        sa.Column("bio", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=False),
        sa.Column("skills_offered", sa.JSON(), nullable=False),
        sa.Column("skills_wanted", sa.JSON(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column("completed_exchanges", sa.Integer(), nullable=False),
        sa.Column("matches", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_created_at"), "users", ["created_at"], unique=False)

    op.create_table(
        "skill_listings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "category",
            sa.Enum(
                "Programming",
                "Design",
                "Languages",
                "Music",
                "Cooking",
                "Photography",
                "Writing",
                "Marketing",
                "Business",
                "Fitness",
                "Crafts",
                "Other",
                name="skillcategory",
                native_enum=False,
                length=30,
            ),
            nullable=False,
        ),
        sa.Column(
            "level",
            sa.Enum(
                "Beginner",
                "Intermediate",
                "Advanced",
                name="skilllevel",
                native_enum=False,
                length=20,
            ),
            nullable=False,
        ),
        sa.Column("time_commitment", sa.String(length=100), nullable=False),
        sa.Column("availability", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=False),
        sa.Column("skills_wanted", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_skill_listings_user_id"), "skill_listings", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_skill_listings_created_at"), "skill_listings", ["created_at"], unique=False
    )
    op.create_index(
        "idx_skill_listing_category_level_active",
        "skill_listings",
        ["category", "level", "is_active"],
        unique=False,
    )

    op.create_table(
        "match_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=False),
        sa.Column("skill_offered", sa.String(length=100), nullable=False),
        sa.Column("skill_wanted", sa.String(length=100), nullable=False),
        sa.Column("message", sa.String(length=500), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "accepted",
                "declined",
                name="matchrequeststatus",
                native_enum=False,
                length=20,
            ),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "sender_id",
            "receiver_id",
            "skill_offered",
            "skill_wanted",
            name="uq_match_request_tuple",
        ),
    )
    op.create_index(
        op.f("ix_match_requests_created_at"), "match_requests", ["created_at"], unique=False
    )
    op.create_index(
        "idx_match_request_receiver_status",
        "match_requests",
        ["receiver_id", "status"],
        unique=False,
    )
    op.create_index(
        "idx_match_request_sender_status",
        "match_requests",
        ["sender_id", "status"],
        unique=False,
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user1_id", sa.Integer(), nullable=False),
        sa.Column("user2_id", sa.Integer(), nullable=False),
        sa.Column("skill_listing_id", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "accepted",
                "declined",
                "completed",
                name="matchstatus",
                native_enum=False,
                length=20,
            ),
            nullable=False,
        ),
        sa.Column("initiated_by_id", sa.Integer(), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=False),
        sa.Column("skill_offered", sa.String(length=100), nullable=False),
        sa.Column("skill_wanted", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("user1_id <> user2_id", name="ck_matches_no_self_match"),
        sa.ForeignKeyConstraint(["initiated_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["skill_listing_id"], ["skill_listings.id"]),
        sa.ForeignKeyConstraint(["user1_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["user2_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_matches_created_at"), "matches", ["created_at"], unique=False)
    op.create_index(
        "idx_match_users_status",
        "matches",
        ["user1_id", "user2_id", "status"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_match_users_status", table_name="matches")
    op.drop_index(op.f("ix_matches_created_at"), table_name="matches")
    op.drop_table("matches")

    op.drop_index("idx_match_request_sender_status", table_name="match_requests")
    op.drop_index("idx_match_request_receiver_status", table_name="match_requests")
    op.drop_index(op.f("ix_match_requests_created_at"), table_name="match_requests")
    op.drop_table("match_requests")

    op.drop_index("idx_skill_listing_category_level_active", table_name="skill_listings")
    op.drop_index(op.f("ix_skill_listings_created_at"), table_name="skill_listings")
    op.drop_index(op.f("ix_skill_listings_user_id"), table_name="skill_listings")
    op.drop_table("skill_listings")

    op.drop_index(op.f("ix_users_created_at"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
