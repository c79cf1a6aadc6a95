"""
Knowledge Graph Builder

Builds the derived graph of users, skills and topics from a knowledge item
snapshot and the roster. The graph is rebuilt on demand and never stored.
"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple

from knowhub.core.vocabulary import Vocabulary, load_vocabulary
from knowhub.models.knowledge import (
    EdgeType,
    GraphEdge,
    GraphNode,
    KnowledgeGraph,
    KnowledgeItem,
    NodeType,
)
from knowhub.models.records import RosterUser

logger = logging.getLogger(__name__)


def user_node_id(user_id: str) -> str:
    return f"user_{user_id}"


def skill_node_id(tag: str) -> str:
    return f"skill_{tag.lower()}"


def topic_node_id(tag: str) -> str:
    return f"topic_{tag.lower()}"


class KnowledgeGraphBuilder:
    """
    Classifies item tags into skill and topic nodes and links users to them.
    """

    def __init__(self, vocabulary: Optional[Vocabulary] = None):
        self.vocabulary = vocabulary or load_vocabulary()

    def classify_tag(self, tag: str) -> Optional[NodeType]:
        """Skill-tag membership wins over topic-tag membership."""
        if self.vocabulary.is_skill_tag(tag):
            return NodeType.SKILL
        if self.vocabulary.is_topic_tag(tag):
            return NodeType.TOPIC
        return None

    def build(
        self, items: List[KnowledgeItem], roster: List[RosterUser]
    ) -> KnowledgeGraph:
        """
        Build the graph.

        Args:
            items: Extracted knowledge items
            roster: All known users (each becomes a node, even without edges)

        Returns:
            KnowledgeGraph whose edges only reference existing nodes
        """
        nodes: List[GraphNode] = []
        edges: List[GraphEdge] = []

        for user in roster:
            nodes.append(
                GraphNode(
                    id=user_node_id(user.id),
                    type=NodeType.USER,
                    label=user.name,
                    properties={"department": user.department, "role": user.role},
                )
            )
        user_ids = {user.id for user in roster}

        # Count mentions per classified tag before any edge is created
        mention_counts: Counter = Counter()
        first_labels: Dict[Tuple[NodeType, str], str] = {}
        for item in items:
            for tag in item.tags:
                node_type = self.classify_tag(tag)
                if node_type is None:
                    continue
                key = (node_type, tag.lower())
                mention_counts[key] += 1
                first_labels.setdefault(key, tag)

        for (node_type, tag), count in mention_counts.items():
            node_id = skill_node_id(tag) if node_type == NodeType.SKILL else topic_node_id(tag)
            nodes.append(
                GraphNode(
                    id=node_id,
                    type=node_type,
                    label=first_labels[(node_type, tag)],
                    properties={"mention_count": count},
                )
            )

        skipped = 0
        for item in items:
            if item.user_id not in user_ids:
                skipped += 1
                continue
            for tag in item.tags:
                node_type = self.classify_tag(tag)
                if node_type == NodeType.SKILL:
                    target, edge_type = skill_node_id(tag), EdgeType.HAS_SKILL
                elif node_type == NodeType.TOPIC:
                    target, edge_type = topic_node_id(tag), EdgeType.MENTIONED
                else:
                    continue
                edges.append(
                    GraphEdge(
                        source=user_node_id(item.user_id),
                        target=target,
                        type=edge_type,
                        weight=item.confidence,
                    )
                )

        if skipped:
            logger.debug(f"Skipped edges for {skipped} items whose user is not in the roster")

        logger.debug(f"Built knowledge graph: {len(nodes)} nodes, {len(edges)} edges")
        return KnowledgeGraph(nodes=nodes, edges=edges)
