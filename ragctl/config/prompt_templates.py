"""
ragctl - Prompt Templates & Fixed Agent Strings
=================================================
Centralised prompt management for the conversation agent and the
retrieval tool.  All prompts and user-visible fixed strings live here so
they can be versioned and reviewed independently of application logic.

Exports
-------
SYSTEM_PROMPT, SEARCH_TOOL_NAME, SEARCH_TOOL_DESCRIPTION,
SEARCH_QUERY_DESCRIPTION, CHUNK_DELIMITER, NO_DATA_FOUND,
EMPTY_QUERY_ERROR, SEARCH_ERROR_TEMPLATE, TOOL_ERROR_TEMPLATE,
TOOL_RESULT_PREFIX, STEP_LIMIT_NOTICE, PROVIDER_ERROR_TEXT, TIMEOUT_ERROR_TEXT.
"""

# ══════════════════════════════════════════════════════════════════════
#  SYSTEM PROMPT
# ══════════════════════════════════════════════════════════════════════

SYSTEM_PROMPT: str = """You are the "RAG Control Engine".
Style: Cyberpunk, precise, technical.
Rules:
1. ALWAYS use the 'search_files' tool if the user asks for information.
2. Cite your sources if you find data.
3. If no data is found, admit it. Do not hallucinate."""


# ══════════════════════════════════════════════════════════════════════
#  RETRIEVAL TOOL
# ══════════════════════════════════════════════════════════════════════

SEARCH_TOOL_NAME: str = "search_files"

SEARCH_TOOL_DESCRIPTION: str = "Search internal documents for relevant information."

SEARCH_QUERY_DESCRIPTION: str = "The search query or topic to look for in the documents"

# Separates retrieved chunks so the model can see chunk boundaries.
CHUNK_DELIMITER: str = "\n\n---\n\n"


# ══════════════════════════════════════════════════════════════════════
#  TOOL RESULT STRINGS
# ══════════════════════════════════════════════════════════════════════
# The agent only consumes text, so every failure path of the tool is
# rendered as one of these strings instead of an exception.

NO_DATA_FOUND: str = "No relevant information found in the documents."

EMPTY_QUERY_ERROR: str = "Error: No search query provided."

SEARCH_ERROR_TEMPLATE: str = "Error searching documents: {message}"

TOOL_ERROR_TEMPLATE: str = "Error: {message}"


# ══════════════════════════════════════════════════════════════════════
#  AGENT LOOP
# ══════════════════════════════════════════════════════════════════════

TOOL_RESULT_PREFIX: str = "Tool result:\n"

STEP_LIMIT_NOTICE: str = "Tool step limit reached before a final answer was produced."

PROVIDER_ERROR_TEXT: str = "The language model is unavailable right now. Please try again."

TIMEOUT_ERROR_TEXT: str = "The response took too long and was aborted."
