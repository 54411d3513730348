"""
Section-label grammar shared by the prompt templates and the reply parser.

Every template asks the model to echo these ALL-CAPS labels verbatim; the
parser anchors extraction on them. Defaults are deliberately middling so a
parsing failure never silently fails a user's session.
"""

# Answer evaluation
SCORE = "SCORE:"
FEEDBACK = "FEEDBACK:"

# Resume analysis
MATCH_SCORE = "MATCH_SCORE:"
OVERALL_FEEDBACK = "OVERALL_FEEDBACK:"
STRENGTHS = "STRENGTHS:"
WEAKNESSES = "WEAKNESSES:"
SUGGESTIONS = "SUGGESTIONS:"
MATCHING_SKILLS = "MATCHING_SKILLS:"
MISSING_SKILLS = "MISSING_SKILLS:"

# Session analytics
OVERALL_SCORE = "OVERALL_SCORE:"
TECHNICAL_SCORE = "TECHNICAL_SCORE:"
BEHAVIORAL_SCORE = "BEHAVIORAL_SCORE:"
COMMUNICATION_SCORE = "COMMUNICATION_SCORE:"
CONFIDENCE_SCORE = "CONFIDENCE_SCORE:"
PERFORMANCE_LEVEL = "PERFORMANCE_LEVEL:"
DETAILED_FEEDBACK = "DETAILED_FEEDBACK:"
IMPROVEMENT_SUGGESTIONS = "IMPROVEMENT_SUGGESTIONS:"

RECOGNIZED_LABELS = (
    SCORE,
    FEEDBACK,
    MATCH_SCORE,
    OVERALL_FEEDBACK,
    STRENGTHS,
    WEAKNESSES,
    SUGGESTIONS,
    MATCHING_SKILLS,
    MISSING_SKILLS,
    OVERALL_SCORE,
    TECHNICAL_SCORE,
    BEHAVIORAL_SCORE,
    COMMUNICATION_SCORE,
    CONFIDENCE_SCORE,
    PERFORMANCE_LEVEL,
    DETAILED_FEEDBACK,
    IMPROVEMENT_SUGGESTIONS,
)

# Subscore label -> skill category tracked by the adaptive context
SUBSCORE_LABELS = {
    TECHNICAL_SCORE: "Technical",
    BEHAVIORAL_SCORE: "Behavioral",
    COMMUNICATION_SCORE: "Communication",
    CONFIDENCE_SCORE: "Confidence",
}

DEFAULT_ANSWER_SCORE = 7.0
DEFAULT_MATCH_SCORE = 75
DEFAULT_ANALYTICS_SCORE = 7.0
# A band name rather than the raw reply, matching the other level labels
DEFAULT_PERFORMANCE_LEVEL = "Good"

PLACEHOLDER_STRENGTHS = ("Good effort", "Completed interview")
PLACEHOLDER_WEAKNESSES = ("Could improve communication", "Practice more")

TRUNCATION_NOTICE = "\n\n[Note: Content truncated due to length limits]"

# Keyword heuristics for categorizing generated questions, checked in order
QUESTION_CATEGORY_KEYWORDS = (
    ("Technical", ("algorithm", "code", "implement")),
    ("Behavioral", ("tell me about", "describe a time")),
)
DEFAULT_QUESTION_CATEGORY = "General"
