"""Authorization check routine."""

from .checker import AuthorizationChecker, AuthzDecision

__all__ = ["AuthorizationChecker", "AuthzDecision"]
