"""create candidates

Revision ID: 3c9e1f7a2b40
Revises:
Create Date: 2026-10-18 10:12:44.118203

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9e1f7a2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "candidates",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, comment="Full name"),
        sa.Column("email", sa.String(length=255), nullable=False, comment="Email"),
        sa.Column("phone", sa.String(length=50), nullable=True, comment="Phone"),
        sa.Column("resume_content", sa.Text(), nullable=True, comment="Résumé text"),
        sa.Column("interview_result", sa.JSON(), nullable=True, comment="Latest InterviewResult"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_candidates")),
    )
    op.create_index(op.f("ix_candidates_email"), "candidates", ["email"], unique=False)
    op.create_index(op.f("ix_candidates_created_at"), "candidates", ["created_at"], unique=False)


def downgrade():
    op.drop_index(op.f("ix_candidates_created_at"), table_name="candidates")
    op.drop_index(op.f("ix_candidates_email"), table_name="candidates")
    op.drop_table("candidates")
