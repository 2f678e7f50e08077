from .service import LinearIssue, LinearService, LinearTeam

__all__ = ["LinearIssue", "LinearService", "LinearTeam"]
