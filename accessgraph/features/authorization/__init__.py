"""
Authorization feature module.

Decision procedure combining direct denials, direct grants and
role-derived permissions.
"""
from accessgraph.features.authorization.schemas import AuthorizationDecision, DecisionReason
from accessgraph.features.authorization.service import AuthorizationService

__all__ = ["AuthorizationService", "AuthorizationDecision", "DecisionReason"]
