"""
gleba.db

Package base de données : base déclarative, engine async et session par requête.

Contenu :
- base : Base SQLAlchemy + convention de nommage des contraintes.
- session : engine async + get_db() (Depends).
- les migrations Alembic (backend/alembic) utilisent DATABASE_URL_SYNC.
"""
