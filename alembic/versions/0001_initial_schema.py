"""Initial schema: accounts, catalog, bookings, teams and assignments

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

# SQLAlchemy Enum columns store member names
staff_role = sa.Enum("CLEANER", "SUPERVISOR", "MANAGER", name="staffrole")
staff_status = sa.Enum("ACTIVE", "INACTIVE", "ON_LEAVE", name="staffstatus")
approval_status = sa.Enum("PENDING_INFO", "PENDING_APPROVAL", "APPROVED", "REJECTED", name="approvalstatus")
team_status = sa.Enum("ACTIVE", "INACTIVE", name="teamstatus")
team_role = sa.Enum("LEADER", "MEMBER", "SPECIALIST", name="teamrole")
booking_status = sa.Enum(
    "PENDING_VERIFICATION", "PENDING_PASSWORD", "CONFIRMED", "ASSIGNED", "IN_PROGRESS", "COMPLETED", "CANCELLED",
    name="bookingstatus",
)
assignment_type = sa.Enum("TEAM", "INDIVIDUAL", name="assignmenttype")
assignment_status = sa.Enum(
    "ASSIGNED", "ACCEPTED", "IN_PROGRESS", "COMPLETED", "CANCELLED", "REJECTED", name="assignmentstatus"
)
assignment_priority = sa.Enum("LOW", "NORMAL", "HIGH", "URGENT", name="assignmentpriority")
notification_type = sa.Enum("NEW_ASSIGNMENT", "STATUS_UPDATE", "ADMIN_MESSAGE", "REMINDER", name="notificationtype")


def timestamps():
    return [
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32)),
        sa.Column("address", sa.Text()),
        sa.Column("password_hash", sa.String(255)),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "staff",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32)),
        sa.Column("address", sa.Text()),
        sa.Column("password_hash", sa.String(255)),
        sa.Column("role", staff_role, nullable=False),
        sa.Column("status", staff_status, nullable=False),
        sa.Column("approval_status", approval_status, nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column("verification_token", sa.String(128), unique=True),
        sa.Column("verified_at", sa.DateTime()),
        sa.Column("approved_at", sa.DateTime()),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("specialization", sa.String(255)),
        sa.Column("experience_years", sa.Integer()),
        sa.Column("hourly_rate", sa.Float()),
        sa.Column("zzp_number", sa.String(64)),
        sa.Column("kvk_number", sa.String(64)),
        sa.Column("bsn_number", sa.String(64)),
        sa.Column("brp_number", sa.String(64)),
        sa.Column("car_type", sa.String(100)),
        sa.Column("bhv_certificate", sa.Boolean()),
        sa.Column("identity_document", sa.String(255)),
        sa.Column("passport_number", sa.String(64)),
        sa.Column("bank_account", sa.String(64)),
        *timestamps(),
    )
    op.create_index("ix_staff_email", "staff", ["email"], unique=True)

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(100)),
        sa.Column("price", sa.String(50)),
        sa.Column("detailed_info", sa.Text()),
        sa.Column("duration", sa.String(100)),
        sa.Column("features", sa.Text()),
        *timestamps(),
    )

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("team_leader_id", sa.Integer(), sa.ForeignKey("staff.id", ondelete="SET NULL")),
        sa.Column("status", team_status, nullable=False),
        *timestamps(),
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "staff_id", sa.Integer(), sa.ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("role_in_team", team_role, nullable=False),
        sa.Column("joined_at", sa.DateTime()),
    )
    op.create_index("ix_team_members_team_id", "team_members", ["team_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("service_type", sa.String(255), nullable=False),
        sa.Column("preferred_date", sa.Date(), nullable=False),
        sa.Column("preferred_time", sa.String(100), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("verification_token", sa.String(128), unique=True),
        sa.Column("verification_expires_at", sa.DateTime()),
        sa.Column("verified_at", sa.DateTime()),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *timestamps(),
    )
    op.create_index("ix_bookings_email", "bookings", ["email"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("assignment_type", assignment_type, nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="SET NULL")),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff.id", ondelete="SET NULL")),
        sa.Column("assigned_by", sa.Integer(), sa.ForeignKey("staff.id", ondelete="SET NULL")),
        sa.Column("status", assignment_status, nullable=False),
        sa.Column("priority", assignment_priority, nullable=False),
        sa.Column("assigned_at", sa.DateTime()),
        sa.Column("accepted_at", sa.DateTime()),
        sa.Column("started_at", sa.DateTime()),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("rejected_at", sa.DateTime()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("notes", sa.Text()),
        sa.Column("admin_notes", sa.Text()),
        sa.Column("staff_notes", sa.Text()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_assignments_team_id", "assignments", ["team_id"])
    op.create_index("ix_assignments_staff_id", "assignments", ["staff_id"])
    op.create_index("ix_assignments_status", "assignments", ["status"])

    op.create_table(
        "assignment_status_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("old_status", sa.String(50)),
        sa.Column("new_status", sa.String(50), nullable=False),
        sa.Column("changed_by_role", sa.String(20), nullable=False),
        sa.Column("changed_by_id", sa.String(50)),
        sa.Column("change_reason", sa.Text()),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index(
        "ix_assignment_status_history_assignment_id", "assignment_status_history", ["assignment_id"]
    )

    op.create_table(
        "assignment_notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff.id", ondelete="CASCADE")),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE")),
        sa.Column("notification_type", notification_type, nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index(
        "ix_assignment_notifications_assignment_id", "assignment_notifications", ["assignment_id"]
    )
    op.create_index("ix_assignment_notifications_staff_id", "assignment_notifications", ["staff_id"])
    op.create_index("ix_assignment_notifications_team_id", "assignment_notifications", ["team_id"])


def downgrade() -> None:
    op.drop_table("assignment_notifications")
    op.drop_table("assignment_status_history")
    op.drop_table("assignments")
    op.drop_table("bookings")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_table("services")
    op.drop_table("staff")
    op.drop_table("users")
    for enum in (
        notification_type, assignment_priority, assignment_status, assignment_type,
        booking_status, team_role, team_status, approval_status, staff_status, staff_role,
    ):
        enum.drop(op.get_bind(), checkfirst=True)
