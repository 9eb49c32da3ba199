"""create chat_messages table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the chat_messages table and its history lookup indexes."""

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            'owner_id',
            sa.String(length=255),
            nullable=False,
            comment='Opaque identity of the signed-in user'
        ),
        sa.Column(
            'agent_id',
            sa.String(length=255),
            nullable=False,
            comment='Agent the turn was addressed to (not a foreign key)'
        ),
        sa.Column(
            'role',
            sa.String(length=16),
            nullable=False,
            comment='user or assistant'
        ),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column(
            'extracted_text',
            sa.Text(),
            nullable=True,
            comment='Text extracted from an attached document'
        ),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_index('ix_chat_messages_owner_id', 'chat_messages', ['owner_id'])
    op.create_index('ix_chat_messages_agent_id', 'chat_messages', ['agent_id'])
    op.create_index(
        'ix_chat_messages_owner_agent_created',
        'chat_messages',
        ['owner_id', 'agent_id', 'created_at'],
    )


def downgrade() -> None:
    """Drop the chat_messages table and its indexes."""
    op.drop_index('ix_chat_messages_owner_agent_created', table_name='chat_messages')
    op.drop_index('ix_chat_messages_agent_id', table_name='chat_messages')
    op.drop_index('ix_chat_messages_owner_id', table_name='chat_messages')
    op.drop_table('chat_messages')
