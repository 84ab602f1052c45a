"""create health_drugs and health_users tables

Revision ID: 3f1c2b7a9d10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2b7a9d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'health_drugs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='药品ID（自增）'),
        sa.Column('name', sa.String(length=200), nullable=False, comment='药品名称'),
        sa.Column('barcode', sa.String(length=64), nullable=True, comment='条形码（非空时唯一）'),
        sa.Column('approval_number', sa.String(length=100), nullable=True, comment='批准文号（非空时唯一）'),
        sa.Column('manufacturer', sa.String(length=200), nullable=True, comment='生产厂家'),
        sa.Column('specification', sa.String(length=200), nullable=True, comment='规格'),
        sa.Column('dosage_form', sa.String(length=100), nullable=True, comment='剂型'),
        sa.Column('main_ingredient', sa.Text(), nullable=True, comment='主要成分'),
        sa.Column('indications', sa.Text(), nullable=True, comment='适应症'),
        sa.Column('contraindications', sa.Text(), nullable=True, comment='禁忌症'),
        sa.Column('adverse_reactions', sa.Text(), nullable=True, comment='不良反应'),
        sa.Column('dosage_usage', sa.Text(), nullable=True, comment='用法用量'),
        sa.Column('precautions', sa.Text(), nullable=True, comment='注意事项'),
        sa.Column('drug_interactions', sa.Text(), nullable=True, comment='药物相互作用'),
        sa.Column('storage_conditions', sa.String(length=500), nullable=True, comment='贮藏条件'),
        sa.Column('validity_period', sa.String(length=100), nullable=True, comment='有效期'),
        sa.Column('image_url', sa.String(length=500), nullable=True, comment='药品图片URL'),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=True, comment='参考价格（精确小数）'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='状态：active-正常，offline-下架'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode'),
        sa.UniqueConstraint('approval_number'),
    )
    op.create_index(op.f('ix_health_drugs_name'), 'health_drugs', ['name'], unique=False)
    op.create_index(op.f('ix_health_drugs_manufacturer'), 'health_drugs', ['manufacturer'], unique=False)
    op.create_index(op.f('ix_health_drugs_status'), 'health_drugs', ['status'], unique=False)

    op.create_table(
        'health_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='用户ID（自增）'),
        sa.Column('openid', sa.String(length=64), nullable=False, comment='微信openid（唯一）'),
        sa.Column('unionid', sa.String(length=64), nullable=True, comment='微信unionid'),
        sa.Column('nickname', sa.String(length=100), nullable=True, comment='昵称'),
        sa.Column('avatar_url', sa.String(length=500), nullable=True, comment='头像URL'),
        sa.Column('gender', sa.SmallInteger(), nullable=False, comment='性别：0-未知，1-男，2-女'),
        sa.Column('age', sa.Integer(), nullable=True, comment='年龄'),
        sa.Column('phone', sa.String(length=20), nullable=True, comment='手机号（非空时唯一）'),
        sa.Column('emergency_contact', sa.String(length=100), nullable=True, comment='紧急联系人'),
        sa.Column('emergency_phone', sa.String(length=20), nullable=True, comment='紧急联系人电话'),
        sa.Column('medical_history', sa.Text(), nullable=True, comment='病史信息'),
        sa.Column('allergies', sa.Text(), nullable=True, comment='过敏史'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='状态：active-正常，disabled-禁用'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True, comment='最近登录时间'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('openid'),
        sa.UniqueConstraint('phone'),
    )
    op.create_index(op.f('ix_health_users_unionid'), 'health_users', ['unionid'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_health_users_unionid'), table_name='health_users')
    op.drop_table('health_users')
    op.drop_index(op.f('ix_health_drugs_status'), table_name='health_drugs')
    op.drop_index(op.f('ix_health_drugs_manufacturer'), table_name='health_drugs')
    op.drop_index(op.f('ix_health_drugs_name'), table_name='health_drugs')
    op.drop_table('health_drugs')
