"""
Prompts for answering people/expertise questions.

This module renders an assembled AIContext into chat messages for the
downstream answer generator. The generator call itself lives outside this
package; only the message construction happens here.
"""

from typing import List

from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate

from knowhub.models.context import AIContext, QueryType

NOT_SET = "not set"
NONE_LABEL = "none"

ANSWER_SYSTEM_PROMPT = """You are the knowledge hub assistant for this organization. Use the information below to answer the question.

## Organization
- Total members: {total_users}
- Active members: {active_users}
- Departments: {departments}
- Main skills: {common_skills}

## Requester
- Name: {user_name}
- Department: {department}
- Role: {role}
- Expertise: {expertise}

## Related knowledge
- Relevant knowledge items: {relevant_count}
{relevant_knowledge}
- Related members: {related_users}
- Suggested experts: {suggested_experts}
- Knowledge gaps: {knowledge_gaps}

## Conversation
- Query type: {query_type}
- Confidence: {confidence_percent}%

## Recent trends
{recent_trends}

Your role:
1. Give concrete, practical answers grounded in the information above
2. Introduce the right members and encourage collaboration
3. Point out knowledge gaps and suggest how to close them
4. Say plainly when you do not know

Keep the answer short and easy to read."""

ANSWER_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", ANSWER_SYSTEM_PROMPT),
        ("human", "{query}"),
    ]
)

MAX_PROMPT_SKILLS = 5
MAX_PROMPT_TRENDS = 3
MAX_PROMPT_KNOWLEDGE = 5
MAX_CONTEXTUAL_ACTIONS = 3

QUERY_TYPE_ACTIONS = {
    QueryType.SKILL_SEARCH: "Update the team skill map",
    QueryType.USER_INQUIRY: "Fill in your profile details",
    QueryType.KNOWLEDGE_REQUEST: "Add this information to the knowledge base",
}


def _join(values: List[str]) -> str:
    return ", ".join(values) if values else NONE_LABEL


def format_context_variables(context: AIContext, query: str) -> dict:
    """Flatten an AIContext into the template variables of ANSWER_PROMPT."""
    user = context.user_context
    org = context.organization_context
    knowledge = context.knowledge_context
    conversation = context.conversation_context

    knowledge_lines = [
        f"  - [{item.kind.value}] {item.user_name}: {(item.content.splitlines() or [''])[0]}"
        for item in knowledge.relevant_knowledge[:MAX_PROMPT_KNOWLEDGE]
    ]
    trend_lines = [
        f"- {trend.topic}: {trend.trend.value} ({trend.frequency} mentions)"
        for trend in org.recent_trends[:MAX_PROMPT_TRENDS]
    ]

    return {
        "total_users": org.total_users,
        "active_users": org.active_users,
        "departments": _join(org.departments),
        "common_skills": _join(org.common_skills[:MAX_PROMPT_SKILLS]),
        "user_name": user.user_name,
        "department": user.department or NOT_SET,
        "role": user.role or NOT_SET,
        "expertise": ", ".join(user.expertise) or NOT_SET,
        "relevant_count": len(knowledge.relevant_knowledge),
        "relevant_knowledge": "\n".join(knowledge_lines),
        "related_users": _join([u.user_name for u in knowledge.related_users]),
        "suggested_experts": _join(
            [f"{e.user_name} ({e.skill})" for e in knowledge.suggested_experts]
        ),
        "knowledge_gaps": _join(knowledge.knowledge_gaps),
        "query_type": conversation.query_type.value,
        "confidence_percent": round(conversation.confidence * 100),
        "recent_trends": "\n".join(trend_lines) or f"- {NONE_LABEL}",
        "query": query,
    }


def build_answer_messages(context: AIContext, query: str) -> List[BaseMessage]:
    """
    Render the answer prompt for a query.

    Args:
        context: Context bundle assembled for the query
        query: The user's question

    Returns:
        [SystemMessage, HumanMessage] ready for a chat model
    """
    return ANSWER_PROMPT.format_messages(**format_context_variables(context, query))


def generate_contextual_actions(context: AIContext) -> List[str]:
    """Suggest up to three follow-up actions derived from the context."""
    knowledge = context.knowledge_context
    actions = []

    if knowledge.suggested_experts:
        actions.append(f"Consult {knowledge.suggested_experts[0].user_name} directly")

    if knowledge.knowledge_gaps:
        actions.append("Encourage knowledge sharing in this area")

    if knowledge.related_users:
        actions.append("Exchange notes with members who have related experience")

    query_action = QUERY_TYPE_ACTIONS.get(context.conversation_context.query_type)
    if query_action:
        actions.append(query_action)

    return actions[:MAX_CONTEXTUAL_ACTIONS]
