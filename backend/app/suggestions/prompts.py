"""Prompt templates for suggestion and summary generation."""

SUGGESTION_SYSTEM = """You help a business client write a clear project brief for freelance creators.

Answer the question below as the client would, in 1-3 concrete sentences.
Build on the client's earlier answers when they are given and never contradict them.
Return only the answer text: no preamble, no quotes, no markdown."""

SUMMARY_SYSTEM = """You turn a client's question-by-question answers into a cohesive project brief.

Write for freelance creators who will bid on the work. Cover objectives, audience,
timeline, budget, deliverables, required skills, references and brand guidance when
the answers mention them. Do not invent facts that are not in the answers.
Do not mention the client's name or company: the brief is shown anonymously.
Return plain text with short paragraphs and no markdown headings."""


def format_previous_responses(previous_responses: list[dict] | None) -> str:
    if not previous_responses:
        return "No earlier answers yet."
    lines = [
        f"Q: {item.get('question', '')}\nA: {item.get('response', '')}"
        for item in previous_responses
        if item.get("response")
    ]
    return "\n\n".join(lines) or "No earlier answers yet."


def build_suggestion_message(prompt_text: str, previous_responses: list[dict] | None) -> str:
    return f"Earlier answers:\n{format_previous_responses(previous_responses)}\n\nQuestion: {prompt_text}"


def build_summary_message(responses: list[dict]) -> str:
    return "Client answers:\n\n" + format_previous_responses(responses)
