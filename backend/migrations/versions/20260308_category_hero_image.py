"""Add hero_image to product_categories

Revision ID: 20260308_category_hero_image
Revises: 20260301_initial
Create Date: 2026-03-08

Holds the public delivery URL of the category's hero image. The image
itself lives in Cloudflare Images; NULL means no hero image.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260308_category_hero_image"
down_revision = "20260301_initial"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("product_categories", schema=None) as batch_op:
        batch_op.add_column(sa.Column("hero_image", sa.Text(), nullable=True))


def downgrade():
    with op.batch_alter_table("product_categories", schema=None) as batch_op:
        batch_op.drop_column("hero_image")
