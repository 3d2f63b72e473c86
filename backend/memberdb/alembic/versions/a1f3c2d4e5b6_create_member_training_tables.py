"""
Create users, members, trainings and training registrations.

Revision ID: a1f3c2d4e5b6
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1f3c2d4e5b6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "role",
            sa.Enum("admin", "member", name="account_role_enum"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_is_active", "users", ["is_active"])
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("nama", sa.String(length=255), nullable=True),
        sa.Column("no_identitas", sa.String(length=64), nullable=True, unique=True),
        sa.Column("tipe_keanggotaan", sa.String(length=64), nullable=True),
        sa.Column("institusi", sa.String(length=255), nullable=True),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("alamat", sa.Text(), nullable=True),
        sa.Column("wilayah", sa.String(length=128), nullable=True),
        sa.Column("nomor_wa", sa.String(length=32), nullable=True),
        sa.Column(
            "status_verifikasi",
            sa.Enum("PENDING", "DITERIMA", "DITOLAK", name="member_verification_status_enum"),
            nullable=True,
        ),
        sa.Column("tanggal_submit", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("badge", sa.Text(), nullable=True),
    )
    op.create_index("ix_members_user_id", "members", ["user_id"], unique=True)
    op.create_index("idx_members_status", "members", ["status_verifikasi"])

    op.create_table(
        "pelatihan_member",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("judul_pelatihan", sa.String(length=255), nullable=False),
        sa.Column("deskripsi_pelatihan", sa.Text(), nullable=True),
        sa.Column("narasumber", sa.String(length=255), nullable=True),
        sa.Column("tanggal_pelatihan", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tanggal_berakhir", sa.DateTime(timezone=True), nullable=True),
        sa.Column("link", sa.String(length=512), nullable=True),
        sa.Column("badge", sa.String(length=255), nullable=True),
        sa.Column("kode", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "peserta_pelatihan",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "pelatihan_id",
            sa.Integer(),
            sa.ForeignKey("pelatihan_member.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "member_id",
            sa.Integer(),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kode", sa.String(length=128), nullable=False),
        sa.Column("is_kirim", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("waktu_daftar", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("waktu_selesai", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("pelatihan_id", "member_id", name="uq_peserta_pelatihan_member"),
        sa.UniqueConstraint("kode", name="uq_peserta_pelatihan_kode"),
        sa.CheckConstraint("is_kirim IN (0, 1)", name="ck_peserta_pelatihan_is_kirim"),
    )
    op.create_index("ix_peserta_pelatihan_pelatihan_id", "peserta_pelatihan", ["pelatihan_id"])
    op.create_index("idx_peserta_pelatihan_member", "peserta_pelatihan", ["member_id"])


def downgrade() -> None:
    op.drop_index("idx_peserta_pelatihan_member", table_name="peserta_pelatihan")
    op.drop_index("ix_peserta_pelatihan_pelatihan_id", table_name="peserta_pelatihan")
    op.drop_table("peserta_pelatihan")
    op.drop_table("pelatihan_member")

    op.drop_index("idx_members_status", table_name="members")
    op.drop_index("ix_members_user_id", table_name="members")
    op.drop_table("members")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_is_active", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")

    sa.Enum(name="member_verification_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="account_role_enum").drop(op.get_bind(), checkfirst=True)
