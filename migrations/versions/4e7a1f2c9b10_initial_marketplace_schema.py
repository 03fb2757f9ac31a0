"""initial marketplace schema

Revision ID: 4e7a1f2c9b10
Revises:
Create Date: 2026-10-18 09:12:44.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4e7a1f2c9b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB(astext_type=sa.Text())


def _id():
    return sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _created(nullable=False):
    return sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=nullable)


def _updated():
    return sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        _id(),
        sa.Column('first_name', sa.String(80), nullable=False),
        sa.Column('last_name', sa.String(80), nullable=False),
        sa.Column('username', sa.String(30), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('can_manage_shield', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('can_manage_users', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('can_manage_promotions', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('can_manage_payments', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('can_view_analytics', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('membership_tier', sa.String(20), nullable=False, server_default='free'),
        sa.Column('subscription_expires', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('points_balance', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lifetime_points_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('badges', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('trial_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('trial_ends_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_daily_claim', sa.String(10), nullable=True),
        sa.Column('referral_code', sa.String(64), nullable=True),
        sa.Column('referral_code_used', sa.String(64), nullable=True),
        sa.Column('referred_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('search_day', sa.String(10), nullable=True),
        sa.Column('searches_today', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('daily_search_limit', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('ad_day', sa.String(10), nullable=True),
        sa.Column('ads_watched_today', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_ads_per_day', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('searches_per_ad', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('last_active', sa.TIMESTAMP(timezone=True), nullable=True),
        _created(nullable=True),
        _updated(),
        sa.UniqueConstraint('referral_code'),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index('idx_users_lifetime_points', 'users', ['lifetime_points_earned'], unique=False)
    op.create_index('idx_users_role', 'users', ['role'], unique=False)

    op.create_table(
        'audit_logs',
        _id(),
        sa.Column('actor_user_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', UUID, nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', JSONB, nullable=True),
        _created(),
    )
    op.create_index('ix_audit_logs_actor_user_id_created_at', 'audit_logs', ['actor_user_id', 'created_at'], unique=False)
    op.create_index('ix_audit_logs_action_type', 'audit_logs', ['action_type'], unique=False)
    op.create_index('ix_audit_logs_target', 'audit_logs', ['target_type', 'target_id'], unique=False)

    op.create_table(
        'auctions',
        _id(),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('category', sa.String(30), nullable=False, server_default='other'),
        sa.Column('subcategory', sa.String(100), nullable=True),
        sa.Column('condition', sa.String(20), nullable=False, server_default='good'),
        sa.Column('starting_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('current_bid', sa.Float(), nullable=False, server_default='0'),
        sa.Column('buy_it_now_price', sa.Float(), nullable=True),
        sa.Column('reserve_price', sa.Float(), nullable=True),
        sa.Column('bid_increment', sa.Float(), nullable=False, server_default='1'),
        sa.Column('start_time', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('end_time', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('seller_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('winner_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('bid_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('images', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('tags', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('location', JSONB, nullable=True),
        sa.Column('shipping', JSONB, nullable=True),
        sa.Column('source_platform', sa.String(20), nullable=False, server_default='internal'),
        sa.Column('source_external_id', sa.String(120), nullable=True),
        sa.Column('source_url', sa.Text(), nullable=True),
        sa.Column('deal_potential', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('competition_level', sa.String(10), nullable=False, server_default='low'),
        sa.Column('trending_score', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('last_updated', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        _created(nullable=True),
        _updated(),
        sa.UniqueConstraint('source_platform', 'source_external_id', name='uq_auctions_source'),
    )
    op.create_index('idx_auctions_status_end', 'auctions', ['status', 'end_time'], unique=False)
    op.create_index('idx_auctions_category', 'auctions', ['category'], unique=False)
    op.create_index('idx_auctions_deal', 'auctions', ['deal_potential'], unique=False)
    op.create_index('idx_auctions_trending', 'auctions', ['trending_score'], unique=False)

    op.create_table(
        'bids',
        _id(),
        sa.Column('auction_id', UUID, sa.ForeignKey('auctions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('bidder_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('is_winning', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created(),
    )
    op.create_index('idx_bids_auction_amount', 'bids', ['auction_id', 'amount'], unique=False)

    op.create_table(
        'auction_watchers',
        _id(),
        sa.Column('auction_id', UUID, sa.ForeignKey('auctions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        _created(),
        sa.UniqueConstraint('auction_id', 'user_id', name='uq_auction_watchers'),
    )

    op.create_table(
        'points_ledger',
        _id(),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(60), nullable=False),
        sa.Column('ref_id', sa.String(120), nullable=True),
        sa.Column('idempotency_key', sa.String(200), nullable=True),
        _created(),
        sa.UniqueConstraint('idempotency_key'),
        sa.CheckConstraint('amount > 0', name='ck_points_ledger_amount_positive'),
    )
    op.create_index('idx_points_ledger_user_created', 'points_ledger', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'referral_logs',
        _id(),
        sa.Column('referrer_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('referee_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('ip', sa.String(64), nullable=True),
        sa.Column('ua', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('reason', sa.String(60), nullable=True),
        _created(),
    )
    op.create_index('idx_referral_logs_referrer_created', 'referral_logs', ['referrer_id', 'created_at'], unique=False)
    op.create_index('idx_referral_logs_ip_created', 'referral_logs', ['ip', 'created_at'], unique=False)

    op.create_table(
        'user_levels',
        _id(),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('current_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('xp_to_next_level', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('xp_progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stats', JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        _created(nullable=True),
        _updated(),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index('idx_user_levels_level_xp', 'user_levels', ['current_level', 'total_xp'], unique=False)

    op.create_table(
        'level_rewards',
        _id(),
        sa.Column('user_level_id', UUID, sa.ForeignKey('user_levels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('points_awarded', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False, server_default='level_up'),
        sa.Column('awarded_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'level_milestones',
        _id(),
        sa.Column('user_level_id', UUID, sa.ForeignKey('user_levels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(60), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reward', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('achieved_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'daily_task_progress',
        _id(),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day', sa.String(10), nullable=False),
        sa.Column('daily_login', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('search_product', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('watch_ads', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('share_app', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('share_product', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('social_post', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('use_video_scanner', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('search_local_deals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('points_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('all_tasks_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created(nullable=True),
        _updated(),
        sa.UniqueConstraint('user_id', 'day', name='uq_daily_task_progress_user_day'),
    )

    op.create_table(
        'promo_codes',
        _id(),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('creator_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('creator_type', sa.String(20), nullable=False, server_default='influencer'),
        sa.Column('created_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('discount_type', sa.String(20), nullable=False),
        sa.Column('discount_value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('user_usage_limit', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('valid_from', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('valid_until', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('minimum_order_value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('commission_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_revenue', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_commission', sa.Float(), nullable=False, server_default='0'),
        sa.Column('tags', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(nullable=True),
        _updated(),
    )
    op.create_index(op.f('ix_promo_codes_code'), 'promo_codes', ['code'], unique=True)
    op.create_index('idx_promo_codes_creator_active', 'promo_codes', ['creator_id', 'is_active'], unique=False)
    op.create_index('idx_promo_codes_validity', 'promo_codes', ['valid_from', 'valid_until'], unique=False)

    op.create_table(
        'promo_code_usages',
        _id(),
        sa.Column('promo_code_id', UUID, sa.ForeignKey('promo_codes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_id', sa.String(120), nullable=False),
        sa.Column('order_value', sa.Float(), nullable=False),
        sa.Column('discount_amount', sa.Float(), nullable=False),
        sa.Column('final_amount', sa.Float(), nullable=False),
        sa.Column('commission_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='applied'),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(),
    )
    op.create_index('idx_promo_usages_code_user', 'promo_code_usages', ['promo_code_id', 'user_id'], unique=False)
    op.create_index('idx_promo_usages_created', 'promo_code_usages', ['created_at'], unique=False)

    op.create_table(
        'commissions',
        _id(),
        sa.Column('creator_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('promo_code_id', UUID, sa.ForeignKey('promo_codes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('promo_code_usage_id', UUID, sa.ForeignKey('promo_code_usages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_value', sa.Float(), nullable=False),
        sa.Column('commission_rate', sa.Float(), nullable=False),
        sa.Column('commission_amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('payout_method', sa.String(20), nullable=False, server_default='paypal'),
        sa.Column('payout_details', JSONB, nullable=True),
        sa.Column('paid_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('paid_amount', sa.Float(), nullable=True),
        sa.Column('transaction_id', sa.String(120), nullable=True),
        sa.Column('approved_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('minimum_payout', sa.Float(), nullable=False, server_default='25'),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(),
        _updated(),
    )
    op.create_index('idx_commissions_creator_status', 'commissions', ['creator_id', 'status'], unique=False)
    op.create_index('idx_commissions_code', 'commissions', ['promo_code_id'], unique=False)

    op.create_table(
        'feed_items',
        _id(),
        sa.Column('source', sa.String(20), nullable=False),
        sa.Column('source_id', sa.String(200), nullable=False),
        sa.Column('author', JSONB, nullable=True),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('permalink', sa.Text(), nullable=True),
        sa.Column('media', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('tags', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('products', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('metrics', JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('timestamp', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('rank', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_product', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created(nullable=True),
        sa.UniqueConstraint('source', 'source_id', name='uq_feed_items_source'),
    )
    op.create_index('idx_feed_items_timestamp_rank', 'feed_items', ['timestamp', 'rank'], unique=False)

    op.create_table(
        'shield_api_keys',
        _id(),
        sa.Column('key_id', sa.String(64), nullable=False),
        sa.Column('key_hash', sa.Text(), nullable=False),
        sa.Column('app', sa.String(60), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('prefix', sa.String(12), nullable=True),
        sa.Column('last_four', sa.String(4), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _created(),
        sa.Column('last_used_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint('key_id'),
    )

    op.create_table(
        'shield_events',
        _id(),
        sa.Column('savvy_user_id', sa.String(120), nullable=False),
        sa.Column('app', sa.String(60), nullable=False),
        sa.Column('level', sa.String(20), nullable=False),
        sa.Column('event_type', sa.String(40), nullable=False),
        sa.Column('context', JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('ts', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('risk_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('risk_factors', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('confidence_level', sa.Float(), nullable=False, server_default='0.8'),
        sa.Column('investigation_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('case_id', sa.String(120), nullable=True),
        sa.Column('metadata', JSONB, nullable=True),
        _created(),
    )
    op.create_index('idx_shield_events_user_created', 'shield_events', ['savvy_user_id', 'created_at'], unique=False)
    op.create_index('idx_shield_events_app_type', 'shield_events', ['app', 'event_type'], unique=False)
    op.create_index('idx_shield_events_risk', 'shield_events', ['risk_score'], unique=False)

    op.create_table(
        'shield_enforcements',
        _id(),
        sa.Column('savvy_user_id', sa.String(120), nullable=False),
        sa.Column('app', sa.String(60), nullable=False),
        sa.Column('level', sa.String(20), nullable=False),
        sa.Column('risk_score', sa.Float(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False, server_default='0.8'),
        sa.Column('decision', sa.String(30), nullable=False),
        sa.Column('decision_reason', sa.Text(), nullable=True),
        sa.Column('duration_hours', sa.Integer(), nullable=True),
        sa.Column('features_affected', JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('restrictions', JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('review_required', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('review_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('sla_hours', sa.Integer(), nullable=True),
        sa.Column('sla_deadline', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('reviewed_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reviewed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('override_decision', sa.String(30), nullable=True),
        sa.Column('override_reason', sa.Text(), nullable=True),
        sa.Column('event_id', UUID, sa.ForeignKey('shield_events.id', ondelete='SET NULL'), nullable=True),
        sa.Column('case_id', sa.String(120), nullable=True),
        sa.Column('false_positive_probability', sa.Float(), nullable=True),
        sa.Column('webhook_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('webhook_status_code', sa.Integer(), nullable=True),
        sa.Column('webhook_response', sa.Text(), nullable=True),
        sa.Column('webhook_retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _created(),
        _updated(),
    )
    op.create_index('idx_shield_enforcements_user_status', 'shield_enforcements', ['savvy_user_id', 'status'], unique=False)
    op.create_index('idx_shield_enforcements_review', 'shield_enforcements', ['review_status', 'sla_deadline'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_shield_enforcements_review', table_name='shield_enforcements')
    op.drop_index('idx_shield_enforcements_user_status', table_name='shield_enforcements')
    op.drop_table('shield_enforcements')
    op.drop_index('idx_shield_events_risk', table_name='shield_events')
    op.drop_index('idx_shield_events_app_type', table_name='shield_events')
    op.drop_index('idx_shield_events_user_created', table_name='shield_events')
    op.drop_table('shield_events')
    op.drop_table('shield_api_keys')
    op.drop_index('idx_feed_items_timestamp_rank', table_name='feed_items')
    op.drop_table('feed_items')
    op.drop_index('idx_commissions_code', table_name='commissions')
    op.drop_index('idx_commissions_creator_status', table_name='commissions')
    op.drop_table('commissions')
    op.drop_index('idx_promo_usages_created', table_name='promo_code_usages')
    op.drop_index('idx_promo_usages_code_user', table_name='promo_code_usages')
    op.drop_table('promo_code_usages')
    op.drop_index('idx_promo_codes_validity', table_name='promo_codes')
    op.drop_index('idx_promo_codes_creator_active', table_name='promo_codes')
    op.drop_index(op.f('ix_promo_codes_code'), table_name='promo_codes')
    op.drop_table('promo_codes')
    op.drop_table('daily_task_progress')
    op.drop_table('level_milestones')
    op.drop_table('level_rewards')
    op.drop_index('idx_user_levels_level_xp', table_name='user_levels')
    op.drop_table('user_levels')
    op.drop_index('idx_referral_logs_ip_created', table_name='referral_logs')
    op.drop_index('idx_referral_logs_referrer_created', table_name='referral_logs')
    op.drop_table('referral_logs')
    op.drop_index('idx_points_ledger_user_created', table_name='points_ledger')
    op.drop_table('points_ledger')
    op.drop_table('auction_watchers')
    op.drop_index('idx_bids_auction_amount', table_name='bids')
    op.drop_table('bids')
    op.drop_index('idx_auctions_trending', table_name='auctions')
    op.drop_index('idx_auctions_deal', table_name='auctions')
    op.drop_index('idx_auctions_status_end', table_name='auctions')
    op.drop_index('idx_auctions_category', table_name='auctions')
    op.drop_table('auctions')
    op.drop_index('ix_audit_logs_target', table_name='audit_logs')
    op.drop_index('ix_audit_logs_action_type', table_name='audit_logs')
    op.drop_index('ix_audit_logs_actor_user_id_created_at', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('idx_users_role', table_name='users')
    op.drop_index('idx_users_lifetime_points', table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
