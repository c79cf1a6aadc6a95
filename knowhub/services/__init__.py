# Services
from knowhub.services.context_builder import ContextBuilder, InvalidUserIdError
from knowhub.services.knowledge_orchestrator import KnowledgeOrchestrator

__all__ = [
    "ContextBuilder",
    "InvalidUserIdError",
    "KnowledgeOrchestrator",
]
