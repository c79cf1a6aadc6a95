"""Knowledge graph package."""

from knowhub.core.graph.knowledge_graph_builder import (
    KnowledgeGraphBuilder,
    skill_node_id,
    topic_node_id,
    user_node_id,
)

__all__ = [
    "KnowledgeGraphBuilder",
    "skill_node_id",
    "topic_node_id",
    "user_node_id",
]
