"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP utilisés par l'API d'administration et l'adaptateur de
recherche.
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_SERVER_ERROR = 500

# Seuil d'erreur côté client/serveur
HTTP_ERROR_MIN = 400

# Timeout par défaut des clients HTTP sortants (secondes)
DEFAULT_TIMEOUT = 5.0
