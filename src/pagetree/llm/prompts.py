"""Prompts sent to the reasoning collaborator.

Templates use ``str.format`` placeholders; literal JSON braces are doubled.
"""

from __future__ import annotations

SYSTEM_DOCUMENT_ANALYZER = (
    "You are an expert document analyzer. You help extract structure, navigate content, and "
    "answer questions about documents. Always respond with valid JSON when requested."
)

_STRUCTURE_RULES = """The structure variable is the numeric system which represents the index of the hierarchy section in the table of contents. For example, the first section has structure index 1, the first subsection has structure index 1.1, the second subsection has structure index 1.2, etc.

For the title, you need to extract the original title from the text, only fix the space inconsistency.

The provided text contains tags like <physical_index_X> and <physical_index_X> to indicate the start and end of page X.

For the physical_index, you need to extract the physical index of the start of the section from the text. Keep the <physical_index_X> format.

The response should be in the following format:
    [
        {{
            "structure": <structure index, "x.x.x"> (string),
            "title": <title of the section, keep the original title>,
            "physical_index": "<physical_index_X> (keep the format)"
        }},
        ...
    ]
"""

GENERATE_TOC_INIT = (
    "You are an expert in extracting hierarchical tree structure, your task is to generate the "
    "tree structure of the document.\n\n"
    + _STRUCTURE_RULES
    + "\nDirectly return the final JSON structure. Do not output anything else.\n"
    "Given text\n:{content}"
)

GENERATE_TOC_CONTINUE = (
    "You are an expert in extracting hierarchical tree structure.\n"
    "You are given a tree structure of the previous part and the text of the current part.\n"
    "Your task is to continue the tree structure from the previous part to include the current "
    "part.\n\n"
    + _STRUCTURE_RULES
    + "\nDirectly return the additional part of the final JSON structure. Do not output anything "
    "else.\n"
    "Given text\n:{content}\n"
    "Previous tree structure\n:{previous}"
)

CHECK_TITLE_APPEARANCE = """Your job is to check if the given section appears or starts in the given page_text.

Note: do fuzzy matching, ignore any space inconsistency in the page_text.

The given section title is {title}.
The given page_text is {page_text}.

Reply format:
{{
    "thinking": <why do you think the section appears or starts in the page_text>,
    "answer": "yes or no" (yes if the section appears or starts in the page_text, no otherwise)
}}
Directly return the final JSON structure. Do not output anything else."""

SINGLE_ITEM_INDEX_FIXER = """You are given a section title and several pages of a document, your job is to find the physical index of the start page of the section in the partial document.

The provided pages contains tags like <physical_index_X> and <physical_index_X> to indicate the physical location of the page X.

Section title: {title}

Partial document:
{content}

Reply in a JSON format:
{{
    "thinking": <explain which page, started and closed by <physical_index_X>, contains the start of this section>,
    "physical_index": "<physical_index_X>" (keep the format)
}}
Directly return the final JSON structure. Do not output anything else."""

TREE_SEARCH = """You are an expert at navigating hierarchical document structures to find relevant information.

You are given:
1. A query/question from the user
2. A hierarchical tree structure of a document with sections and page indices

Your task is to analyze the tree structure and identify which sections are most likely to contain information relevant to the query.

Tree structure:
{tree_structure}

User query: {query}

Reply in JSON format:
{{
    "thinking": <explain your reasoning about which sections are relevant and why>,
    "relevant_sections": [
        {{
            "title": <section title>,
            "start_index": <page number where section starts>,
            "end_index": <page number where section ends>,
            "relevance": <"high", "medium", or "low">,
            "reason": <why this section is relevant to the query>
        }},
        ...
    ]
}}

Order sections by relevance (most relevant first).
Directly return the final JSON structure. Do not output anything else."""

GENERATE_NODE_SUMMARY = """You are given a section from a document. Generate a concise summary (2-3 sentences) describing the main topics and key information covered in this section.

Section Title: {title}

Section Content:
{content}

Provide ONLY the summary text, nothing else. Be specific about what information this section contains that would help someone searching for relevant content."""

CONNECTION_PROBE = "Say 'hello' and nothing else."
