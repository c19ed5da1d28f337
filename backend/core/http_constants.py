"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP utilisés par les routes et les tests, ainsi que les
limites de pagination de l'API de contenus.
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_PAYLOAD_TOO_LARGE = 413
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_TOO_MANY_REQUESTS = 429
HTTP_INTERNAL_SERVER_ERROR = 500
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503

# Pagination / historique
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
HISTORY_LIMIT = 50
HISTORY_SUMMARY_CHARS = 100

# Bornes de la transcription acceptée par /analyze
TRANSCRIPT_MIN_CHARS = 50
TRANSCRIPT_MAX_CHARS = 50_000
