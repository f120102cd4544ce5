"""Schéma initial Gleba.

Rôle (fonctionnel) :
- Comptes et sessions (users, user_sessions).
- Référentiel potager (familles, especes, varietes, itps, rotations, rotation_details).
- Terrain de l’utilisateur (planches, cultures).
- Élevage (aliments, user_stocks_aliments, lots, consommations_aliments).

Revision ID: 5a2c81e4d0b7
Revises:
Create Date: 2026-01-12 10:14:32.118204
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Identifiants Alembic
revision: str = "5a2c81e4d0b7"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Application des changements de schéma."""
    # --- Comptes ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_user_sessions_user_id_users"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_sessions")),
        sa.UniqueConstraint("token_hash", name=op.f("uq_user_sessions_token_hash")),
    )
    op.create_index(op.f("ix_user_sessions_user_id"), "user_sessions", ["user_id"])
    op.create_index(op.f("ix_user_sessions_expires_at"), "user_sessions", ["expires_at"])

    # --- Référentiel ---
    op.create_table(
        "familles",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("couleur", sa.String(length=7), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_familles")),
    )
    op.create_table(
        "especes",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("famille_id", sa.String(length=100), nullable=True),
        sa.Column("nom_latin", sa.String(length=200), nullable=True),
        sa.Column("rendement", sa.Float(), nullable=True),
        sa.Column("vivace", sa.Boolean(), nullable=False),
        sa.Column("besoin_n", sa.Float(), nullable=True),
        sa.Column("besoin_p", sa.Float(), nullable=True),
        sa.Column("besoin_k", sa.Float(), nullable=True),
        sa.Column("besoin_eau", sa.Float(), nullable=True),
        sa.Column("prix_kg", sa.Float(), nullable=True),
        sa.Column("densite", sa.Float(), nullable=True),
        sa.Column("dose_semis", sa.Float(), nullable=True),
        sa.Column("a_planifier", sa.Boolean(), nullable=False),
        sa.Column("couleur", sa.String(length=7), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["famille_id"], ["familles.id"], name=op.f("fk_especes_famille_id_familles"), ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_especes")),
    )
    op.create_index(op.f("ix_especes_famille_id"), "especes", ["famille_id"])

    op.create_table(
        "varietes",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("espece_id", sa.String(length=100), nullable=False),
        sa.Column("nb_graines_g", sa.Float(), nullable=True),
        sa.Column("stock_graines", sa.Float(), nullable=True),
        sa.Column("stock_plants", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["espece_id"], ["especes.id"], name=op.f("fk_varietes_espece_id_especes"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_varietes")),
    )
    op.create_index(op.f("ix_varietes_espece_id"), "varietes", ["espece_id"])

    op.create_table(
        "itps",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("espece_id", sa.String(length=100), nullable=True),
        sa.Column("semaine_semis", sa.Integer(), nullable=True),
        sa.Column("semaine_plantation", sa.Integer(), nullable=True),
        sa.Column("semaine_recolte", sa.Integer(), nullable=True),
        sa.Column("duree_pepiniere", sa.Integer(), nullable=True),
        sa.Column("duree_culture", sa.Integer(), nullable=True),
        sa.Column("nb_rangs", sa.Integer(), nullable=True),
        sa.Column("espacement", sa.Float(), nullable=True),
        sa.Column("espacement_rangs", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["espece_id"], ["especes.id"], name=op.f("fk_itps_espece_id_especes"), ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_itps")),
    )
    op.create_index(op.f("ix_itps_espece_id"), "itps", ["espece_id"])

    op.create_table(
        "rotations",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("nb_annees", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_rotations")),
    )
    op.create_table(
        "rotation_details",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("rotation_id", sa.String(length=100), nullable=False),
        sa.Column("annee", sa.Integer(), nullable=False),
        sa.Column("itp_id", sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(
            ["rotation_id"],
            ["rotations.id"],
            name=op.f("fk_rotation_details_rotation_id_rotations"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["itp_id"], ["itps.id"], name=op.f("fk_rotation_details_itp_id_itps"), ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_rotation_details")),
    )
    op.create_index(op.f("ix_rotation_details_rotation_id"), "rotation_details", ["rotation_id"])

    # --- Terrain ---
    op.create_table(
        "planches",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("rotation_id", sa.String(length=100), nullable=True),
        sa.Column("rotation_debut", sa.Integer(), nullable=True),
        sa.Column("longueur", sa.Float(), nullable=True),
        sa.Column("largeur", sa.Float(), nullable=True),
        sa.Column("surface", sa.Float(), nullable=True),
        sa.Column("ilot", sa.String(length=50), nullable=True),
        sa.Column("planches_influencees", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_planches_user_id_users"), ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["rotation_id"], ["rotations.id"], name=op.f("fk_planches_rotation_id_rotations"), ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_planches")),
    )
    op.create_index(op.f("ix_planches_user_id"), "planches", ["user_id"])
    op.create_index(op.f("ix_planches_rotation_id"), "planches", ["rotation_id"])
    op.create_index(op.f("ix_planches_ilot"), "planches", ["ilot"])

    op.create_table(
        "cultures",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("espece_id", sa.String(length=100), nullable=False),
        sa.Column("variete_id", sa.String(length=100), nullable=True),
        sa.Column("itp_id", sa.String(length=100), nullable=True),
        sa.Column("planche_id", sa.String(length=100), nullable=True),
        sa.Column("annee", sa.Integer(), nullable=False),
        sa.Column("date_semis", sa.Date(), nullable=True),
        sa.Column("date_plantation", sa.Date(), nullable=True),
        sa.Column("date_recolte", sa.Date(), nullable=True),
        sa.Column("nb_rangs", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_cultures_user_id_users"), ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["espece_id"], ["especes.id"], name=op.f("fk_cultures_espece_id_especes")),
        sa.ForeignKeyConstraint(
            ["variete_id"], ["varietes.id"], name=op.f("fk_cultures_variete_id_varietes"), ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["itp_id"], ["itps.id"], name=op.f("fk_cultures_itp_id_itps"), ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["planche_id"], ["planches.id"], name=op.f("fk_cultures_planche_id_planches"), ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_cultures")),
    )
    op.create_index(op.f("ix_cultures_planche_id"), "cultures", ["planche_id"])
    op.create_index("ix_cultures_user_annee", "cultures", ["user_id", "annee"])

    # --- Élevage ---
    op.create_table(
        "aliments",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("nom", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("especes_cibles", sa.String(length=255), nullable=True),
        sa.Column("proteines", sa.Float(), nullable=True),
        sa.Column("energie", sa.Float(), nullable=True),
        sa.Column("prix", sa.Float(), nullable=True),
        sa.Column("stock_min", sa.Float(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_aliments")),
    )
    op.create_index(op.f("ix_aliments_type"), "aliments", ["type"])

    op.create_table(
        "user_stocks_aliments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("aliment_id", sa.String(length=100), nullable=False),
        sa.Column("stock", sa.Float(), nullable=True),
        sa.Column("date_stock", sa.DateTime(timezone=True), nullable=True),
        sa.Column("stock_min", sa.Float(), nullable=True),
        sa.Column("prix", sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_user_stocks_aliments_user_id_users"), ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["aliment_id"],
            ["aliments.id"],
            name=op.f("fk_user_stocks_aliments_aliment_id_aliments"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_stocks_aliments")),
        sa.UniqueConstraint("user_id", "aliment_id", name="uq_user_stocks_aliments_user_aliment"),
    )

    op.create_table(
        "lots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("nom", sa.String(length=200), nullable=False),
        sa.Column("espece", sa.String(length=100), nullable=True),
        sa.Column("effectif", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_lots_user_id_users"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lots")),
    )
    op.create_index(op.f("ix_lots_user_id"), "lots", ["user_id"])

    op.create_table(
        "consommations_aliments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("aliment_id", sa.String(length=100), nullable=False),
        sa.Column("lot_id", sa.Integer(), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quantite > 0", name=op.f("ck_consommations_aliments_quantite_positive")),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_consommations_aliments_user_id_users"), ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["aliment_id"], ["aliments.id"], name=op.f("fk_consommations_aliments_aliment_id_aliments")
        ),
        sa.ForeignKeyConstraint(
            ["lot_id"], ["lots.id"], name=op.f("fk_consommations_aliments_lot_id_lots"), ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_consommations_aliments")),
    )
    op.create_index(op.f("ix_consommations_aliments_aliment_id"), "consommations_aliments", ["aliment_id"])
    op.create_index(op.f("ix_consommations_aliments_lot_id"), "consommations_aliments", ["lot_id"])
    op.create_index("ix_consommations_aliments_user_date", "consommations_aliments", ["user_id", "date"])


def downgrade() -> None:
    """Retour arrière des changements de schéma."""
    op.drop_table("consommations_aliments")
    op.drop_table("lots")
    op.drop_table("user_stocks_aliments")
    op.drop_table("aliments")
    op.drop_table("cultures")
    op.drop_table("planches")
    op.drop_table("rotation_details")
    op.drop_table("rotations")
    op.drop_table("itps")
    op.drop_table("varietes")
    op.drop_table("especes")
    op.drop_table("familles")
    op.drop_table("user_sessions")
    op.drop_table("users")
