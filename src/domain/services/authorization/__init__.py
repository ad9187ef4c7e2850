from .path_authorization_service import PathAuthorizationService

__all__ = ["PathAuthorizationService"]
