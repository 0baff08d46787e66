"""Initial schema: tournaments, participants, matches, phases, access links, scoring

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("creator_id", sa.String(), nullable=False),
        sa.Column("game", sa.String(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tournament_creator_id", "tournament", ["creator_id"])

    op.create_table(
        "participant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("participant_name", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
    )
    op.create_index("ix_participant_tournament_id", "participant", ["tournament_id"])
    op.create_index("ix_participant_user_id", "participant", ["user_id"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column("bracket_type", sa.String(), nullable=False),
        sa.Column("participant1_id", sa.Integer(), nullable=True),
        sa.Column("participant2_id", sa.Integer(), nullable=True),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("participant1_ready", sa.Boolean(), nullable=False),
        sa.Column("participant2_ready", sa.Boolean(), nullable=False),
        sa.Column("current_score_submission_id", sa.Integer(), nullable=True),
        sa.Column("score_submission_status", sa.String(), nullable=True),
        sa.Column("participant1_score", sa.Integer(), nullable=True),
        sa.Column("participant2_score", sa.Integer(), nullable=True),
        sa.Column("source_match1_id", sa.Integer(), nullable=True),
        sa.Column("source_match2_id", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["participant1_id"], ["participant.id"]),
        sa.ForeignKeyConstraint(["participant2_id"], ["participant.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["participant.id"]),
        sa.ForeignKeyConstraint(["source_match1_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["source_match2_id"], ["match.id"]),
    )
    op.create_index("ix_match_tournament_id", "match", ["tournament_id"])

    op.create_table(
        "tournament_phase",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("phase_name", sa.String(), nullable=False),
        sa.Column("phase_type", sa.String(), nullable=False),
        sa.Column("phase_order", sa.Integer(), nullable=False),
        sa.Column("turn_based", sa.Boolean(), nullable=False),
        sa.Column("max_selections", sa.Integer(), nullable=False),
        sa.Column("time_limit_seconds", sa.Integer(), nullable=False),
        sa.Column("is_optional", sa.Boolean(), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
    )
    op.create_index("ix_tournament_phase_tournament_id", "tournament_phase", ["tournament_id"])

    op.create_table(
        "match_phase",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("tournament_phase_id", sa.Integer(), nullable=False),
        sa.Column("phase_order", sa.Integer(), nullable=False),
        sa.Column("phase_status", sa.String(), nullable=False),
        sa.Column("current_turn_participant_id", sa.Integer(), nullable=True),
        sa.Column("time_remaining", sa.Integer(), nullable=True),
        sa.Column("skipped", sa.Boolean(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["tournament_phase_id"], ["tournament_phase.id"]),
        sa.ForeignKeyConstraint(["current_turn_participant_id"], ["participant.id"]),
    )
    op.create_index("ix_match_phase_match_id", "match_phase", ["match_id"])

    op.create_table(
        "phase_selection",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_phase_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column("selection_type", sa.String(), nullable=False),
        sa.Column("selection_data", sa.JSON(), nullable=False),
        sa.Column("selection_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_phase_id"], ["match_phase.id"]),
        sa.ForeignKeyConstraint(["participant_id"], ["participant.id"]),
        sa.UniqueConstraint(
            "match_phase_id", "participant_id", "selection_order", name="uq_selection_phase_participant_order"
        ),
    )
    op.create_index("ix_phase_selection_match_phase_id", "phase_selection", ["match_phase_id"])

    op.create_table(
        "match_participant_privilege",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column("access_token", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(), nullable=True),
        sa.Column("last_email_sent_at", sa.DateTime(), nullable=True),
        sa.Column("last_sms_sent_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["participant_id"], ["participant.id"]),
    )
    op.create_index(
        "ix_match_participant_privilege_access_token", "match_participant_privilege", ["access_token"], unique=True
    )
    op.create_index("ix_match_participant_privilege_match_id", "match_participant_privilege", ["match_id"])
    op.create_index("ix_match_participant_privilege_participant_id", "match_participant_privilege", ["participant_id"])

    op.create_table(
        "score_submission",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("submitted_by", sa.Integer(), nullable=False),
        sa.Column("participant1_score", sa.Integer(), nullable=False),
        sa.Column("participant2_score", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("submission_type", sa.String(), nullable=False),
        sa.Column("game_number", sa.Integer(), nullable=True),
        sa.Column("game_scores", sa.JSON(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["submitted_by"], ["participant.id"]),
    )
    op.create_index("ix_score_submission_match_id", "score_submission", ["match_id"])

    op.create_table(
        "score_verification_action",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("score_submission_id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=True),
        sa.Column("action_type", sa.String(), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["score_submission_id"], ["score_submission.id"]),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["participant_id"], ["participant.id"]),
    )
    op.create_index(
        "ix_score_verification_action_score_submission_id", "score_verification_action", ["score_submission_id"]
    )
    op.create_index("ix_score_verification_action_match_id", "score_verification_action", ["match_id"])

    op.create_table(
        "match_ready_event",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["participant_id"], ["participant.id"]),
    )
    op.create_index("ix_match_ready_event_match_id", "match_ready_event", ["match_id"])

    op.create_table(
        "match_update",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("update_type", sa.String(), nullable=False),
        sa.Column("update_data", sa.JSON(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["participant_id"], ["participant.id"]),
    )
    op.create_index("ix_match_update_match_id", "match_update", ["match_id"])

    op.create_table(
        "notification_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column("channel", sa.String(), nullable=False),
        sa.Column("recipient", sa.String(), nullable=False),
        sa.Column("subject", sa.String(), nullable=True),
        sa.Column("message_body", sa.String(), nullable=False),
        sa.Column("provider_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["participant_id"], ["participant.id"]),
    )
    op.create_index("ix_notification_log_tournament_id", "notification_log", ["tournament_id"])
    op.create_index("ix_notification_log_match_id", "notification_log", ["match_id"])


def downgrade() -> None:
    op.drop_table("notification_log")
    op.drop_table("match_update")
    op.drop_table("match_ready_event")
    op.drop_table("score_verification_action")
    op.drop_table("score_submission")
    op.drop_table("match_participant_privilege")
    op.drop_table("phase_selection")
    op.drop_table("match_phase")
    op.drop_table("tournament_phase")
    op.drop_table("match")
    op.drop_table("participant")
    op.drop_table("tournament")
