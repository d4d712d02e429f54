"""
KMA Assistant - Prompt Templates
==================================
Centralised prompt management for the chat handler and the RAG
formatter.  All prompt text lives here so it can be versioned and
reviewed independently of application logic.

Exports
-------
SYSTEM_PROMPT, RAG_INSTRUCTIONS, NO_CONTEXT_NOTE,
USER_QUESTION_PREFIX, RAG_CONTEXT_PREAMBLE.
"""

# ══════════════════════════════════════════════════════════════════════
#  SYSTEM PROMPT
# ══════════════════════════════════════════════════════════════════════

SYSTEM_PROMPT: str = """You are an on-call incident response assistant with access to a knowledge base of incident response procedures (KMAs - Knowledge Management Articles). Your role is to help engineers resolve system incidents by providing accurate, step-by-step guidance based on documented procedures.

When responding to incident-related queries:
1. Always search your knowledge base first for relevant incident response procedures
2. Provide specific, actionable steps from the documented procedures
3. Include relevant system information (severity levels, alert thresholds, etc.)
4. Reference the source documents for verification
5. If no relevant documentation is found, clearly state this and provide general guidance

Be concise, accurate, and focus on getting incidents resolved quickly. Always prioritize safety and following established procedures."""


# ══════════════════════════════════════════════════════════════════════
#  GROUNDED / UNGROUNDED TAILS
# ══════════════════════════════════════════════════════════════════════

RAG_INSTRUCTIONS: str = "Please provide a helpful response based on the above documentation. If the documentation is relevant, reference it in your answer. If not relevant, provide general assistance but mention that no specific incident procedures were found."

NO_CONTEXT_NOTE: str = "Note: No relevant incident response procedures were found in the knowledge base. Please provide general assistance."

USER_QUESTION_PREFIX: str = "User Question:"


# ══════════════════════════════════════════════════════════════════════
#  RAG CONTEXT BLOCK
# ══════════════════════════════════════════════════════════════════════

RAG_CONTEXT_PREAMBLE: str = "Based on the following incident response documentation:\n\n"
