"""Prompt templates for grounded chat and quiz generation."""

TUTOR_INTRO = "You are an AI tutor helping students study from their own documents."

CITATION_RULES = """CRITICAL CITATION RULES:
1. ALWAYS cite your sources when using information from the provided context
2. Use this EXACT format for citations: "According to p. X: '[2-3 line quote from source]'"
3. The page number X must match the page number of the source you quote
4. The quote must be EXACTLY as written in the source text (2-3 lines maximum)
5. If multiple sources support your answer, cite each one separately

Example citation:
"According to p. 23: 'Photosynthesis is the process by which green plants use sunlight to synthesize nutrients from carbon dioxide and water.'\""""

GROUNDED_CHAT_TEMPLATE = """{intro}
{title_line}
{rules}

Relevant context from the PDF:

{context}

Provide clear, accurate answers based ONLY on the context provided above. Always include proper citations."""

FALLBACK_CHAT_TEMPLATE = """{intro}
{title_line}
No relevant passages from the PDF were found for this question.
Begin your reply by saying that you do not have enough context from the PDF to answer \
from it directly. You may then give brief general guidance, but do not quote the PDF \
and do not cite page numbers."""

QUIZ_SYSTEM_PROMPT = (
    "You are an expert exam question generator. Generate high-quality questions based "
    "ONLY on the provided content. Do not use external knowledge."
)

QUIZ_FALLBACK_SYSTEM_PROMPT = "You are an expert exam question generator for students."

QUESTION_FORMAT_RULES = """- Every question has a unique id, a type, the question text, a topic and an explanation
- For MCQs: give exactly 4 choices, answer_key as the zero-based index of the correct choice, and an explanation
- For SAQs: put a model answer (2-3 sentences) in explanation
- For LAQs: put a comprehensive model answer (1 paragraph) in explanation
- Each question must include a topic field identifying the subject area
- Only use these question types: {types}"""

GROUNDED_QUIZ_TEMPLATE = """Generate {count} questions based on the following content from "{title}".
Types needed: {types}

CONTENT FROM PDF:
{context}

INSTRUCTIONS:
- Base questions ONLY on the content above
- Include page references in explanations when possible
- Make questions exam-relevant and test understanding of the content
{format_rules}"""

FALLBACK_QUIZ_TEMPLATE = """You are generating quiz questions for a student studying from "{title}".
No passages of the material are available, so work from the title alone. Generate {count} exam-style questions.
Types needed: {types}

IMPORTANT:
- If the title suggests a specific subject (physics, chemistry, biology, mathematics...), generate questions from that subject
- The title may be a code name; infer the subject from it where you can
- Do NOT generate generic questions about unrelated subjects
- Do NOT cite page numbers
{format_rules}"""


def _title_line(document_title: str | None) -> str:
    if not document_title:
        return ""
    return f'You are answering questions about the PDF: "{document_title}".\n'


def chat_system_prompt(context: str, document_title: str | None = None) -> str:
    """System prompt for a chat turn; an empty context selects the fallback prompt."""
    if not context:
        return FALLBACK_CHAT_TEMPLATE.format(
            intro=TUTOR_INTRO, title_line=_title_line(document_title)
        )
    return GROUNDED_CHAT_TEMPLATE.format(
        intro=TUTOR_INTRO,
        title_line=_title_line(document_title),
        rules=CITATION_RULES,
        context=context,
    )


def quiz_messages(
    question_types: list[str], count: int, title: str, context: str | None = None
) -> list[dict]:
    """Messages asking for ``count`` questions, grounded when ``context`` is given."""
    types = ", ".join(question_types)
    format_rules = QUESTION_FORMAT_RULES.format(types=types)
    if context:
        system = QUIZ_SYSTEM_PROMPT
        user = GROUNDED_QUIZ_TEMPLATE.format(
            count=count, title=title, types=types, context=context, format_rules=format_rules
        )
    else:
        system = QUIZ_FALLBACK_SYSTEM_PROMPT
        user = FALLBACK_QUIZ_TEMPLATE.format(
            count=count, title=title, types=types, format_rules=format_rules
        )
    return [{"role": "system", "content": system}, {"role": "user", "content": user}]
