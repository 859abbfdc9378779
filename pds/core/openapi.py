"""OpenAPI schema customization.

Provides custom OpenAPI schema with:
- Bearer JWT security scheme description
- Tag descriptions
"""

from typing import Any, Dict, List

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi


def create_custom_openapi(app: FastAPI) -> Dict[str, Any]:
    """Create custom OpenAPI schema with authentication details.

    Args:
        app: FastAPI application instance

    Returns:
        Customized OpenAPI schema dictionary
    """
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=get_tag_descriptions(),
    )

    # HTTPBearer registers itself under its class name
    components = openapi_schema.setdefault("components", {})
    schemes = components.setdefault("securitySchemes", {})
    schemes["HTTPBearer"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
        "description": "Access token from `POST /accounts/login`. Format: `Bearer <jwt>`.",
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def get_tag_descriptions() -> List[Dict[str, str]]:
    """Get OpenAPI tag descriptions."""
    return [
        {
            "name": "Accounts",
            "description": """Account registration and JWT login.

**Endpoints:** register, login, profile""",
        },
        {
            "name": "Documents",
            "description": """Per-account document storage.

Each document pairs opaque key material with its content. Names are unique
per account and used verbatim as file names.""",
        },
        {
            "name": "Health",
            "description": "Health, readiness and liveness probes.",
        },
    ]
