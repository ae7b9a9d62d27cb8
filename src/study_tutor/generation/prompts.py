"""Prompt text and response schemas for the tutoring requests."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Sequence

from study_tutor.quiz.models import QuestionType

MATH_RULE = """\
Math notation rules (LaTeX is mandatory):
1. Write every mathematical expression in LaTeX.
2. Inline expressions such as variables or short formulas use $ ... $, \
for example $y = 2x$.
3. Important or complex formulas use display math $$ ... $$, for example \
$$ x = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a} $$.
4. Always wrap math in dollar signs. Never write formulas as plain text.
"""

DIFFICULTY_INSTRUCTIONS: Mapping[str, str] = {
    "low": "Basic difficulty: simple questions that confirm the core concept.",
    "medium": (
        "Medium difficulty: typical questions covering the central textbook "
        "content."
    ),
    "high": (
        "Advanced difficulty: challenging questions that require applying "
        "the concept and reasoning about it."
    ),
}

_TYPE_REQUESTS: Mapping[QuestionType, str] = {
    QuestionType.MULTIPLE_CHOICE: (
        "{count} multiple-choice question(s) with five options each."
    ),
    QuestionType.SHORT_ANSWER: (
        "{count} short-answer question(s) with one clear correct answer."
    ),
    QuestionType.TRUE_FALSE: (
        "{count} true/false question(s) answered with 'O' (true) or "
        "'X' (false)."
    ),
    QuestionType.OPEN_ENDED: (
        "{count} open-ended inquiry question(s). There is no single correct "
        "answer; the student reasons from the standard to write their own "
        "answer (real-life application, alternatives, critical thinking)."
    ),
}

NO_HISTORY_MESSAGE = (
    "There is not enough study history to analyse yet. Take a few quizzes "
    "and try again!"
)

DIAGNOSIS_LIMIT = 50

SYSTEM_PROMPT = (
    "You are a kind and capable AI tutor for middle school students."
)


def explanation_prompt(
    subject: str, standard: str, *, language: str, bilingual: bool
) -> str:
    if bilingual:
        return (
            f"You are a friendly {subject} tutor for middle school students "
            f"whose first language is {language}.\n"
            "Explain the core ideas of the following achievement standard so "
            "that students find them easy and fun, as an outline with "
            "numbers and bullet points.\n\n"
            "Guidelines:\n"
            "1. Structure the explanation as **1. Key idea**, "
            "**2. Key expressions / grammar**, **3. Example sentences**.\n"
            "2. Explain difficult terms simply in a warm, encouraging tone.\n"
            "3. Give many natural example sentences a native speaker would "
            "use.\n"
            "4. Keep it to roughly 400 characters of core content.\n"
            f"Write the explanation in {language}.\n\n"
            f'Achievement standard: "{standard}"'
        )
    return (
        f"You are a friendly {subject} tutor for middle school students.\n"
        "Explain the following achievement standard so that students find it "
        "easy and fun, as a clear outline using numbers and bullet points.\n\n"
        "Guidelines:\n"
        "1. Structure it as **1. Definition**, **2. Key features / "
        "principles**, **3. Everyday examples** instead of long prose.\n"
        "2. Use simple words instead of jargon so the idea is intuitive.\n"
        "3. Put math and science formulas in display math ($$ ... $$).\n"
        "4. Use a warm, encouraging teacher's tone.\n"
        f"Write the explanation in {language}.\n\n"
        f"{MATH_RULE}\n"
        f'Achievement standard: "{standard}"'
    )


def key_concept_prompt(subject: str, standard: str, *, language: str) -> str:
    return (
        f"Subject: {subject}\n"
        f'Achievement standard: "{standard}"\n\n'
        "Summarise the core of this standard in 3-5 bullet points a middle "
        "school student can take in at a glance. Explain difficult terms "
        f"simply and keep only the essentials. Write in {language}.\n\n"
        f"{MATH_RULE}"
    )


def summary_prompt(text: str, *, language: str) -> str:
    return (
        "Summarise the text below in 3-7 bullet points a middle school "
        f"student can take in at a glance. Write in {language}.\n\n"
        f"{MATH_RULE}\n---\n{text}"
    )


def follow_up_prompt(
    subject: str,
    standard: str,
    explanation: str,
    history_lines: Iterable[str],
    question: str,
    *,
    language: str,
    bilingual: bool,
) -> str:
    history_text = "\n".join(history_lines)
    focus = (
        "Explain grammar, vocabulary and expressions in simple terms."
        if bilingual
        else "Analogies and examples help. Use LaTeX ($ or $$) for any math."
    )
    parts = [
        f"Answer the student's question about {subject} at a middle school "
        f"level, kindly and simply, in {language}. {focus}",
    ]
    if not bilingual:
        parts.append(MATH_RULE)
    parts.extend(
        [
            f'The student is studying this achievement standard: "{standard}"',
            "You gave the student this initial explanation:\n"
            f"--- initial explanation ---\n{explanation}\n---",
            "The conversation so far:\n"
            f"--- conversation ---\n{history_text}\n---",
            f'The student now asks: "{question}"',
        ]
    )
    return "\n\n".join(parts)


def question_prompt(
    standard: str,
    requests: Sequence[tuple[QuestionType, int]],
    *,
    difficulty: str,
    language: str,
    translation_language: str,
    bilingual: bool,
) -> str:
    total = sum(count for _, count in requests)
    request_lines = "\n".join(
        "- " + _TYPE_REQUESTS[qtype].format(count=count)
        for qtype, count in requests
        if count > 0
    )
    if bilingual:
        language_rule = (
            "Write every text field (question, passage, options, answer, "
            "explanation) in English only. Always fill questionTranslation, "
            "answerTranslation and explanationTranslation with the "
            f"{translation_language} translation."
        )
        passage_rule = (
            "For listening or reading tasks put the script or passage in "
            "the `passage` field (English only) and its "
            f"{translation_language} translation in `passageTranslation`."
        )
    else:
        language_rule = (
            f"Write questions, answers and explanations in {language}."
        )
        passage_rule = (
            "When a question needs a reading passage, put it in the "
            "`passage` field."
        )
    return (
        f'Achievement standard: "{standard}"\n'
        f"Create {total} middle-school questions for this standard as JSON "
        'in the form {"questions": [...]}.\n\n'
        f"Requested:\n{request_lines}\n\n"
        "Rules:\n"
        f"- {DIFFICULTY_INSTRUCTIONS[difficulty]}\n"
        f"- {language_rule}\n"
        "- Include an explanation for every question.\n"
        f"- {passage_rule}\n"
        "- For open-ended questions, the `answer` field holds a model answer "
        "or the key points (keywords, line of reasoning) a grader should "
        "look for.\n"
        "- questionType must be one of: "
        + ", ".join(f"'{qtype.value}'" for qtype in QuestionType)
        + ".\n"
        "- Fill `imagePrompt` with a short English image prompt only when a "
        "picture is essential to solving the question; otherwise leave it "
        "empty.\n"
        "- Escape backslashes inside JSON strings when writing LaTeX "
        '(for example "$\\\\frac{1}{2}$").\n\n'
        f"{MATH_RULE}"
    )


def question_schema(*, bilingual: bool) -> Dict[str, Any]:
    """JSON schema for the structured quiz generation response."""

    string = {"type": "string"}
    string_list = {"type": "array", "items": {"type": "string"}}
    required = ["question", "questionType", "answer", "explanation"]
    if bilingual:
        required += [
            "questionTranslation",
            "answerTranslation",
            "explanationTranslation",
        ]
    item = {
        "type": "object",
        "properties": {
            "question": string,
            "questionTranslation": string,
            "passage": string,
            "passageTranslation": string,
            "questionType": {
                "type": "string",
                "enum": [qtype.value for qtype in QuestionType],
            },
            "options": string_list,
            "optionsTranslation": string_list,
            "answer": string,
            "answerTranslation": string,
            "explanation": string,
            "explanationTranslation": string,
            "imagePrompt": string,
        },
        "required": required,
    }
    return {
        "type": "object",
        "properties": {"questions": {"type": "array", "items": item}},
        "required": ["questions"],
    }


def illustration_prompt(concept: str) -> str:
    return (
        "Strict visual rule: the image must be purely visual with no text, "
        "numbers, labels or symbols. Style: friendly, colourful and clear "
        "educational illustration suitable for a middle school textbook. "
        "It should visually explain the following concept to help a student "
        f"understand: {concept}."
    )


def grading_prompt(
    question: str, correct_answer: str, user_answer: str, *, language: str
) -> str:
    return (
        "You are a strict but fair teacher grading a middle school student's "
        "answer.\n\n"
        f'Question: "{question}"\n'
        f'Model/correct answer: "{correct_answer}"\n'
        f'Student\'s answer: "{user_answer}"\n\n'
        "Grading criteria:\n"
        "- For factual short-answer questions, compare with the correct "
        "answer for accuracy.\n"
        "- For open-ended questions judge logic (is it sound and coherent), "
        "relevance (does it address the question) and creativity (original "
        "thinking, good use of the concepts). The model answer is only a "
        "guide; do not penalise a different answer that is logical and of "
        "high quality.\n\n"
        "Grade scale:\n"
        "- A: Excellent. Accurate, creative and logical (100% points).\n"
        "- B: Good. Mostly accurate but misses minor details (75% points).\n"
        "- C: Fair. Has the keywords or basic logic but is incomplete "
        "(50% points).\n"
        "- D: Poor. Misses key points or the logic is weak (25% points).\n"
        "- E: Incorrect or irrelevant (0% points).\n\n"
        "Give brief, encouraging feedback explaining the grade, written in "
        f"{language}."
    )


GRADING_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "grade": {"type": "string", "enum": ["A", "B", "C", "D", "E"]},
        "feedback": {"type": "string"},
    },
    "required": ["grade", "feedback"],
}


def diagnosis_prompt(history_lines: Iterable[str], *, language: str) -> str:
    history_text = "\n".join(history_lines)
    return (
        "You are a warm but sharp AI learning coach who supports "
        "self-directed study. Analyse the student's study history below and "
        "write a learning diagnosis report.\n\n"
        f"Study history (newest first):\n{history_text}\n\n"
        "Report outline:\n"
        "1. Greeting and overview: praise the overall effort (how often and "
        "how much they studied).\n"
        "2. Strengths: name subjects or units with high or steady scores.\n"
        "3. Weak spots: for low or uneven scores, encourage rather than "
        "scold and suggest concrete review methods (revisit the concept, "
        "keep a mistakes notebook).\n"
        "4. Strategy: which subjects or units to focus on next and how.\n"
        "5. Closing: end with words that build confidence.\n\n"
        "Use Markdown (bold headings, lists), a friendly and respectful tone "
        f"for a middle school student, a few emoji, and write in {language}."
    )
