"""
scripts

Package utilitaire pour les scripts de maintenance / données.

Rôle (fonctionnel) :
- seed_demo : référentiel + utilisateur de démo + token de session.
- stats_planification : statistiques de planification d’un utilisateur, en ligne de commande.

Note :
- Les scripts ne contiennent pas de logique métier “centrale” :
  ils orchestrent et appellent les modules de `gleba/` (services, db…).
"""
