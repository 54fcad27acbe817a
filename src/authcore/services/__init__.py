from src.authcore.services.audit_service import AuditService
from src.authcore.services.auth_service import AuthResult, AuthService
from src.authcore.services.token_service import IssuedTokens, TokenIssuer

__all__ = ["AuditService", "AuthResult", "AuthService", "IssuedTokens", "TokenIssuer"]
