"""initial onboarding schema

Revision ID: 5c1e2b7a9d10
Revises:
Create Date: 2026-10-17 18:40:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e2b7a9d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role_enum = sa.Enum("super_admin", "admin", "doctor", "patient", "user", name="roleenum")
staff_role = sa.Enum("admin", "doctor", "receptionist", "nurse", "patient", name="staffrole")
sex_enum = sa.Enum("male", "female", "other", name="sexenum")
entity_type = sa.Enum("clinic", "doctor", "patient", name="entitytype")
invite_role = sa.Enum("admin", "doctor", "patient", name="inviterole")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "clinics",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=True, unique=True),
        sa.Column("tax_id", sa.String(18), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_clinics_name", "clinics", ["name"])

    op.create_table(
        "doctors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("license", sa.String(20), nullable=True),
        sa.Column("license_region", sa.String(2), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "patients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("tax_id", sa.String(14), nullable=True, unique=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("sex", sex_enum, nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "clinic_users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clinic_id", sa.String(36), sa.ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", staff_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_clinic_user_user", "clinic_users", ["user_id"])
    op.create_index("ix_clinic_user_clinic", "clinic_users", ["clinic_id"])

    op.create_table(
        "clinic_doctors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clinic_id", sa.String(36), sa.ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
        sa.Column("doctor_id", sa.String(36), sa.ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("joined_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("clinic_id", "doctor_id", name="uq_clinic_doctor"),
    )
    op.create_index("ix_clinic_doctor_clinic", "clinic_doctors", ["clinic_id"])
    op.create_index("ix_clinic_doctor_doctor", "clinic_doctors", ["doctor_id"])

    op.create_table(
        "clinic_patients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clinic_id", sa.String(36), sa.ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
        sa.Column("patient_id", sa.String(36), sa.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("enrolled_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("clinic_id", "patient_id", name="uq_clinic_patient"),
    )
    op.create_index("ix_clinic_patient_clinic", "clinic_patients", ["clinic_id"])
    op.create_index("ix_clinic_patient_patient", "clinic_patients", ["patient_id"])

    op.create_table(
        "patient_doctors",
        sa.Column("patient_id", sa.String(36), sa.ForeignKey("patients.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("doctor_id", sa.String(36), sa.ForeignKey("doctors.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "addresses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("entity_type", entity_type, nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("label", sa.String(50), nullable=True),
        sa.Column("zip_code", sa.String(9), nullable=True),
        sa.Column("street", sa.String(255), nullable=True),
        sa.Column("number", sa.String(20), nullable=True),
        sa.Column("complement", sa.String(100), nullable=True),
        sa.Column("neighborhood", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(2), nullable=True),
        sa.Column("country", sa.String(2), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_address_entity", "addresses", ["entity_type", "entity_id"])

    op.create_table(
        "invites",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("role", invite_role, nullable=False),
        sa.Column("clinic_id", sa.String(36), sa.ForeignKey("clinics.id", ondelete="CASCADE"), nullable=True),
        sa.Column("doctor_id", sa.String(36), sa.ForeignKey("doctors.id", ondelete="CASCADE"), nullable=True),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("used_count", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_invites_code", "invites", ["code"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_invites_code", table_name="invites")
    op.drop_table("invites")
    op.drop_index("ix_address_entity", table_name="addresses")
    op.drop_table("addresses")
    op.drop_table("patient_doctors")
    op.drop_index("ix_clinic_patient_patient", table_name="clinic_patients")
    op.drop_index("ix_clinic_patient_clinic", table_name="clinic_patients")
    op.drop_table("clinic_patients")
    op.drop_index("ix_clinic_doctor_doctor", table_name="clinic_doctors")
    op.drop_index("ix_clinic_doctor_clinic", table_name="clinic_doctors")
    op.drop_table("clinic_doctors")
    op.drop_index("ix_clinic_user_clinic", table_name="clinic_users")
    op.drop_index("ix_clinic_user_user", table_name="clinic_users")
    op.drop_table("clinic_users")
    op.drop_table("patients")
    op.drop_table("doctors")
    op.drop_index("ix_clinics_name", table_name="clinics")
    op.drop_table("clinics")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
