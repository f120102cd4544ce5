"""
gleba.core

Package “cœur” de l’application : tout ce qui est transversal (cross-cutting concerns),
indépendant des domaines métier (potager, élevage, référentiel).

- settings
  Configuration centralisée (variables d’environnement, .env, seuils et marges de planification).

- errors
  Format d’erreur API uniforme ({error, details, code, status, request_id, timestamp}),
  AppHTTPException et mise à plat des erreurs de validation par champ.

- logging
  Logs JSON sur stdout, enrichis du request_id et d’extras métier.

- request_id
  Identifiant de corrélation d’une requête (header X-Request-Id ou UUID généré).

- security
  Résolution de la session (token Bearer / X-Session-Token) en SessionContext explicite.

- rate_limit
  Limitation de débit optionnelle, en mémoire, sur /api/*.
"""
