"""create_assessment_tables

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-17 10:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _payload_table(name: str, *columns: sa.Column) -> None:
    op.create_table(name,
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('question_id', sa.String(64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *columns,
        sa.PrimaryKeyConstraint('id', 'question_id'),
        sa.ForeignKeyConstraint(['question_id'], ['assessment_questions.id'], ondelete='CASCADE')
    )
    op.create_index(f'ix_{name}_question_id', name, ['question_id'])


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('assessments',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('language', sa.String(50), nullable=False, server_default='English'),
        sa.Column('level', sa.String(2), nullable=False, server_default='A1'),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('tags_json', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_assessments_id', 'assessments', ['id'])
    op.create_index('ix_assessments_created_by', 'assessments', ['created_by'])

    op.create_table('assessment_questions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('assessment_id', sa.String(64), nullable=False),
        sa.Column('question_type', sa.String(20), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['assessment_id'], ['assessments.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('assessment_id', 'order_index', name='uq_assessment_question_order')
    )
    op.create_index('ix_assessment_questions_id', 'assessment_questions', ['id'])
    op.create_index('ix_assessment_questions_assessment_id', 'assessment_questions', ['assessment_id'])

    _payload_table('multiple_choice_questions',
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options_json', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('correct_answer', sa.Text(), nullable=False, server_default=''),
    )
    _payload_table('matching_items',
        sa.Column('term', sa.Text(), nullable=False),
        sa.Column('translation', sa.Text(), nullable=False),
    )
    _payload_table('fill_in_blank_sentences',
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('answer', sa.Text(), nullable=False),
    )
    _payload_table('flashcard_words',
        sa.Column('term', sa.Text(), nullable=False),
        sa.Column('translation', sa.Text(), nullable=False),
        sa.Column('example', sa.Text(), nullable=True),
    )

    op.create_table('assessment_attempts',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('assessment_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('correct_count', sa.Integer(), nullable=True),
        sa.Column('total_questions', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['assessment_id'], ['assessments.id'], ondelete='CASCADE')
    )
    op.create_index('ix_assessment_attempts_id', 'assessment_attempts', ['id'])
    op.create_index('ix_assessment_attempts_assessment_id', 'assessment_attempts', ['assessment_id'])
    op.create_index('ix_assessment_attempts_user_id', 'assessment_attempts', ['user_id'])
    op.create_index(
        'uq_active_attempt',
        'assessment_attempts',
        ['assessment_id', 'user_id'],
        unique=True,
        sqlite_where=sa.text('completed_at IS NULL'),
        postgresql_where=sa.text('completed_at IS NULL'),
    )

    op.create_table('assessment_answers',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('attempt_id', sa.String(64), nullable=False),
        sa.Column('question_id', sa.String(64), nullable=False),
        sa.Column('item_id', sa.String(64), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('answer_text', sa.Text(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['attempt_id'], ['assessment_attempts.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_question')
    )
    op.create_index('ix_assessment_answers_attempt_id', 'assessment_answers', ['attempt_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_assessment_answers_attempt_id', table_name='assessment_answers')
    op.drop_table('assessment_answers')
    op.drop_index('uq_active_attempt', table_name='assessment_attempts')
    op.drop_index('ix_assessment_attempts_user_id', table_name='assessment_attempts')
    op.drop_index('ix_assessment_attempts_assessment_id', table_name='assessment_attempts')
    op.drop_index('ix_assessment_attempts_id', table_name='assessment_attempts')
    op.drop_table('assessment_attempts')
    for name in ('flashcard_words', 'fill_in_blank_sentences', 'matching_items', 'multiple_choice_questions'):
        op.drop_index(f'ix_{name}_question_id', table_name=name)
        op.drop_table(name)
    op.drop_index('ix_assessment_questions_assessment_id', table_name='assessment_questions')
    op.drop_index('ix_assessment_questions_id', table_name='assessment_questions')
    op.drop_table('assessment_questions')
    op.drop_index('ix_assessments_created_by', table_name='assessments')
    op.drop_index('ix_assessments_id', table_name='assessments')
    op.drop_table('assessments')
