"""
gleba.schemas

Package des schémas API (Pydantic).

Rôle (fonctionnel) :
- Définit les modèles d’entrée/sortie utilisés par l’API (request/response).
- Sépare clairement :
  - les modèles ORM (gleba.models) = persistance DB
  - les schémas Pydantic (gleba.schemas) = contrat HTTP / validation

Usage :
- Les endpoints déclarent response_model=... et valident les payloads avec ces schémas.
- Une saisie invalide produit des erreurs par champ, jamais une erreur serveur.
"""
