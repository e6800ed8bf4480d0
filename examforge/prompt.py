"""
Question generation prompt.
요청으로부터 결정적인 문제 생성 프롬프트를 만듭니다.
Built deterministically from the request so identical requests yield identical prompts.
"""

from .schema import DifficultyLabel, GenerationRequest

_GENERATION_PROMPT = """You are an expert exam question generator. Create {count} {question_type} questions for a {subject} exam on the topic "{topic}".
Target Audience: Grade/Level {grade}.
Difficulty Level: {difficulty}/100 ({difficulty_desc}).
{specific_needs}
Return the output strictly as a JSON array of question objects.

JSON Schema for each question (must match exactly):
{{
  "id": "generated_q1",
  "type": "{question_type}",
  "text": "Question text here... (use LaTeX for math, e.g., $x^2$)",
  "options": [
    {{ "label": "A", "text": "Option A text" }},
    {{ "label": "B", "text": "Option B text" }},
    {{ "label": "C", "text": "Option C text" }},
    {{ "label": "D", "text": "Option D text" }}
  ],
  "correct": ["A"],
  "marks": 1,
  "negative_marks": 0,
  "explanation": "Brief explanation of the correct answer.",
  "difficulty": "{difficulty_label}",
  "topic": "{topic}",
  "subject": "{subject}",
  "tags": ["{topic}", "{subject}", "{grade}"],
  "images": {{
    "question": false,
    "options": [false, false, false, false]
  }}
}}

Field rules:
- "id" is a placeholder; it will be replaced.
- "type" must be "{question_type}" (one of: mcq_single, mcq_multi, true_false, numeric, descriptive).
- "correct" is an array of correct option labels. For numeric questions it holds the value, e.g. ["42.5"].
- "negative_marks" defaults to 0.

For True/False questions, options should be "True" and "False".
For Numeric questions, "options" should be empty [], and "correct" should contain the numeric answer as a string (e.g., ["42.5"]).
For Descriptive questions, "options" should be empty [] and "correct" may hold a model answer.

Ensure the JSON is valid and properly escaped. Do not include any markdown formatting (like ```json) in the response, just the raw JSON array.
"""


def difficulty_label(difficulty: int) -> DifficultyLabel:
    """Map a 1-100 difficulty score onto easy / medium / hard."""
    if difficulty <= 30:
        return DifficultyLabel.EASY
    if difficulty >= 70:
        return DifficultyLabel.HARD
    return DifficultyLabel.MEDIUM


def build_generation_prompt(request: GenerationRequest) -> str:
    """Render the generation prompt for one batch."""
    label = difficulty_label(request.difficulty)
    needs = f"Specific Instructions: {request.specific_needs}\n" if request.specific_needs else ""
    return _GENERATION_PROMPT.format(
        count=request.count,
        question_type=request.question_type.value,
        subject=request.subject,
        topic=request.topic,
        grade=request.grade,
        difficulty=request.difficulty,
        difficulty_desc=label.value.capitalize(),
        difficulty_label=label.value,
        specific_needs=needs,
    )
