"""
gleba.services

Package “services” : logique applicative (use-cases) indépendante des endpoints HTTP.

Rôle (fonctionnel) :
- planification_service : cultures prévues d’après les rotations, récoltes, besoins,
  statistiques annuelles, création en lot des cultures.
- elevage_service : consommations d’aliments et stock utilisateur associé.

Principe :
- gleba.api = transport HTTP (routes, validation, dépendances)
- gleba.services = orchestration métier (réutilisable, testable)
"""
