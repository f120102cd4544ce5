"""
gleba

Package racine du backend Gleba (gestion de ferme : potager, verger, élevage).

Organisation (haute-level) :
- gleba.api      : routes FastAPI (contrats HTTP, dépendances, redirections)
- gleba.core     : briques transverses (settings, errors, logs, sessions, rate-limit)
- gleba.db       : base SQLAlchemy + session async
- gleba.models   : modèles ORM (tables Postgres)
- gleba.schemas  : schémas Pydantic (entrées/sorties API, validation)
- gleba.services : logique métier (planification, consommations d’aliments)
"""

__version__ = "0.1.0"
