"""Initial schema"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Enum labels are the Python member names, which is what SQLAlchemy's Enum persists.
    op.execute("CREATE TYPE review_status AS ENUM ('pending','approved','rejected');")
    op.execute("CREATE TYPE avatar_priority AS ENUM ('high','medium','low');")
    op.execute("CREATE TYPE recommendation_source AS ENUM ('generated','manual');")
    op.execute(
        "CREATE TYPE concept_status AS ENUM ('pending','discovered','approved','rejected','tested','proven');"
    )
    op.execute("CREATE TYPE insight_category AS ENUM ('pain_point','desire','objection','trigger');")
    op.execute("CREATE TYPE script_status AS ENUM ('draft','approved','rejected');")
    op.execute("CREATE TYPE date_range AS ENUM ('last_7_days','last_14_days','last_30_days','last_90_days');")

    review_status_enum = postgresql.ENUM(name="review_status", create_type=False)
    avatar_priority_enum = postgresql.ENUM(name="avatar_priority", create_type=False)
    recommendation_source_enum = postgresql.ENUM(name="recommendation_source", create_type=False)
    concept_status_enum = postgresql.ENUM(name="concept_status", create_type=False)
    insight_category_enum = postgresql.ENUM(name="insight_category", create_type=False)
    script_status_enum = postgresql.ENUM(name="script_status", create_type=False)
    date_range_enum = postgresql.ENUM(name="date_range", create_type=False)

    text_array = postgresql.ARRAY(sa.Text())
    empty_array = sa.text("'{}'::text[]")
    empty_json = sa.text("'{}'::jsonb")
    now = sa.text("NOW()")

    op.create_table(
        "users",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("profile_image_url", sa.Text(), nullable=True),
        sa.Column("meta_access_token", sa.Text(), nullable=True),
        sa.Column("meta_account_id", sa.Text(), nullable=True),
        sa.Column("meta_account_name", sa.Text(), nullable=True),
        sa.Column("meta_connected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
    )

    op.create_table(
        "knowledge_base",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("website_url", sa.Text(), nullable=True),
        sa.Column("brand_voice", sa.Text(), nullable=True),
        sa.Column("mission_statement", sa.Text(), nullable=True),
        sa.Column("brand_values", text_array, server_default=empty_array, nullable=False),
        sa.Column("product_links", text_array, server_default=empty_array, nullable=False),
        sa.Column("pricing_info", sa.Text(), nullable=True),
        sa.Column("key_benefits", text_array, server_default=empty_array, nullable=False),
        sa.Column("usps", text_array, server_default=empty_array, nullable=False),
        sa.Column("current_personas", sa.Text(), nullable=True),
        sa.Column("demographics", sa.Text(), nullable=True),
        sa.Column("main_competitors", text_array, server_default=empty_array, nullable=False),
        sa.Column("instagram_handle", sa.Text(), nullable=True),
        sa.Column("facebook_page", sa.Text(), nullable=True),
        sa.Column("tiktok_handle", sa.Text(), nullable=True),
        sa.Column("content_style", sa.Text(), nullable=True),
        sa.Column("sales_trends", sa.Text(), nullable=True),
        sa.Column("uploaded_files", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("completion_percentage", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.UniqueConstraint("user_id", name="uq_knowledge_base_user"),
    )

    op.create_table(
        "avatars",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("age_range", sa.Text(), nullable=True),
        sa.Column("demographics", sa.Text(), server_default=sa.text("''"), nullable=False),
        sa.Column("psychographics", sa.Text(), nullable=True),
        sa.Column("pain_points", text_array, server_default=empty_array, nullable=False),
        sa.Column("desires", text_array, server_default=empty_array, nullable=False),
        sa.Column("objections", text_array, server_default=empty_array, nullable=False),
        sa.Column("triggers", text_array, server_default=empty_array, nullable=False),
        sa.Column("hooks", text_array, server_default=empty_array, nullable=False),
        sa.Column("sources", text_array, server_default=empty_array, nullable=False),
        sa.Column("priority", avatar_priority_enum, server_default=sa.text("'medium'"), nullable=False),
        sa.Column("data_confidence", sa.Float(), server_default=sa.text("0.75"), nullable=False),
        sa.Column(
            "recommendation_source",
            recommendation_source_enum,
            server_default=sa.text("'generated'"),
            nullable=False,
        ),
        sa.Column("status", review_status_enum, server_default=sa.text("'pending'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
    )
    op.create_index("idx_avatars_user_status", "avatars", ["user_id", "status"])

    op.create_table(
        "concepts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.Text(), server_default=sa.text("''"), nullable=False),
        sa.Column("description", sa.Text(), server_default=sa.text("''"), nullable=False),
        sa.Column("thumbnail", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("owner", sa.Text(), nullable=True),
        sa.Column("hooks", text_array, server_default=empty_array, nullable=False),
        sa.Column("statistics", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("filter", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("status", concept_status_enum, server_default=sa.text("'pending'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.Column("discovered_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
    )
    op.create_index("idx_concepts_user_status", "concepts", ["user_id", "status"])

    op.create_table(
        "avatar_concepts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("avatar_id", sa.String(36), sa.ForeignKey("avatars.id", ondelete="CASCADE"), nullable=False),
        sa.Column("concept_id", sa.String(36), sa.ForeignKey("concepts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("relevance_score", sa.Float(), nullable=True),
        sa.Column("matched_hooks", text_array, server_default=empty_array, nullable=False),
        sa.Column("user_approved", sa.Boolean(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.UniqueConstraint("avatar_id", "concept_id", name="uq_avatar_concepts_pair"),
    )

    op.create_table(
        "sources",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("platform", sa.Text(), nullable=False),
        sa.Column("source_type", sa.Text(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("insights_discovered", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_checked", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
    )

    op.create_table(
        "insights",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("source_id", sa.String(36), sa.ForeignKey("sources.id", ondelete="SET NULL"), nullable=True),
        sa.Column("category", insight_category_enum, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("raw_quote", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("source_platform", sa.Text(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("status", review_status_enum, server_default=sa.text("'pending'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
    )
    op.create_index("idx_insights_user_category", "insights", ["user_id", "category"])

    op.create_table(
        "scripts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("script_type", sa.Text(), nullable=False),
        sa.Column("duration", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("content", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("source_research", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("status", script_status_enum, server_default=sa.text("'draft'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
    )

    op.create_table(
        "meta_campaigns",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ad_account_id", sa.Text(), nullable=False),
        sa.Column("meta_campaign_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=True),
        sa.Column("objective", sa.Text(), nullable=True),
        sa.Column("date_range", sa.Text(), nullable=True),
        sa.Column("metrics", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("synced_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.UniqueConstraint("user_id", "meta_campaign_id", name="uq_meta_campaigns_user_meta_id"),
    )

    op.create_table(
        "meta_adsets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ad_account_id", sa.Text(), nullable=False),
        sa.Column("meta_adset_id", sa.Text(), nullable=False),
        sa.Column("meta_campaign_id", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=True),
        sa.Column("targeting", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("date_range", sa.Text(), nullable=True),
        sa.Column("metrics", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("synced_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.UniqueConstraint("user_id", "meta_adset_id", name="uq_meta_adsets_user_meta_id"),
    )

    op.create_table(
        "meta_ads",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ad_account_id", sa.Text(), nullable=False),
        sa.Column("meta_ad_id", sa.Text(), nullable=False),
        sa.Column("meta_adset_id", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=True),
        sa.Column("creative", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("date_range", sa.Text(), nullable=True),
        sa.Column("metrics", postgresql.JSONB(), server_default=empty_json, nullable=False),
        sa.Column("synced_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.UniqueConstraint("user_id", "meta_ad_id", name="uq_meta_ads_user_meta_id"),
    )

    op.create_table(
        "platform_settings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("default_ad_account_id", sa.Text(), nullable=True),
        sa.Column("default_date_range", date_range_enum, server_default=sa.text("'last_30_days'"), nullable=False),
        sa.Column("benchmark_roas", sa.Float(), server_default=sa.text("2.0"), nullable=False),
        sa.Column("benchmark_ctr", sa.Float(), server_default=sa.text("1.0"), nullable=False),
        sa.Column("benchmark_cpm", sa.Float(), server_default=sa.text("15.0"), nullable=False),
        sa.Column("llm_model", sa.Text(), nullable=True),
        sa.Column("notifications_enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
        sa.UniqueConstraint("user_id", name="uq_platform_settings_user"),
    )

    op.create_table(
        "oauth_link_sessions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider", sa.String(32), server_default=sa.text("'meta'"), nullable=False),
        sa.Column("origin", sa.Text(), nullable=False),
        sa.Column("nonce", sa.String(64), nullable=False),
        sa.Column("completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=now, nullable=False),
    )
    op.create_index("idx_oauth_link_sessions_expires", "oauth_link_sessions", ["expires_at"])


def downgrade() -> None:
    op.drop_index("idx_oauth_link_sessions_expires", table_name="oauth_link_sessions")
    op.drop_table("oauth_link_sessions")
    op.drop_table("platform_settings")
    op.drop_table("meta_ads")
    op.drop_table("meta_adsets")
    op.drop_table("meta_campaigns")
    op.drop_table("scripts")

    op.drop_index("idx_insights_user_category", table_name="insights")
    op.drop_table("insights")
    op.drop_table("sources")
    op.drop_table("avatar_concepts")

    op.drop_index("idx_concepts_user_status", table_name="concepts")
    op.drop_table("concepts")

    op.drop_index("idx_avatars_user_status", table_name="avatars")
    op.drop_table("avatars")

    op.drop_table("knowledge_base")
    op.drop_table("users")

    op.execute("DROP TYPE date_range;")
    op.execute("DROP TYPE script_status;")
    op.execute("DROP TYPE insight_category;")
    op.execute("DROP TYPE concept_status;")
    op.execute("DROP TYPE recommendation_source;")
    op.execute("DROP TYPE avatar_priority;")
    op.execute("DROP TYPE review_status;")
