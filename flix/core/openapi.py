"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) complète le schéma généré par FastAPI avec les conventions de l'API
(authentification, streaming par plages, format des erreurs).
"""

from fastapi.openapi.utils import get_openapi

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "API du catalogue vidéo : authentification, CRUD, uploads S3 et streaming.\n\n"
            "### Conventions\n"
            "- Toutes les heures sont en UTC.\n"
            "- Écritures sur le catalogue : `Authorization: Bearer <access_token>` d'un admin.\n"
            "- `/videos/{id}/stream` accepte une seule plage `Range: bytes=<start>-[<end>]` "
            "(206 / 416 avec `Content-Range: bytes */<taille>`).\n"
            "- Erreurs : `{\"detail\": ...}`.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
