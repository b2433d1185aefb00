"""
Interview category definitions for ResQ

Defines the interview categories a user can pick and the fixed question
sets used whenever the remote question generator cannot be reached.
"""

from enum import Enum


class InterviewCategory(str, Enum):
    """Interview categories."""

    TECHNICAL = "technical"  # Programming, algorithms, technical skills
    HR = "hr"                # Behavioral questions and soft skills
    TESTCASE = "testcase"    # Testing, problem-solving, analytical thinking


# =============================================================================
# FALLBACK QUESTION SETS
# =============================================================================

FALLBACK_QUESTIONS: dict[InterviewCategory, list[str]] = {
    InterviewCategory.TECHNICAL: [
        "Tell me about your technical background and experience.",
        "Describe a challenging technical problem you solved.",
        "How do you approach learning new technologies?",
        "What development tools and methodologies do you use?",
        "How do you ensure code quality in your projects?",
        "Describe your experience with databases.",
        "How do you handle version control in team projects?",
        "What is your approach to testing and debugging?",
        "Tell me about a project you are most proud of.",
        "How do you stay updated with technology trends?",
        "Describe your experience with system design.",
        "How do you handle performance optimization?",
        "What is your approach to documentation?",
        "Tell me about your experience with APIs.",
        "How do you approach problem-solving in development?",
    ],
    InterviewCategory.HR: [
        "Tell me about yourself and your background.",
        "Why are you interested in this position?",
        "What are your greatest strengths?",
        "What is your biggest weakness?",
        "Where do you see yourself in 5 years?",
        "Why are you leaving your current job?",
        "How do you handle stress and pressure?",
        "Describe a time you faced a challenge at work.",
        "What motivates you in your career?",
        "How do you handle conflicts with colleagues?",
        "What are your salary expectations?",
        "Why should we hire you?",
        "What questions do you have for us?",
        "Describe your ideal work environment.",
        "How do you prioritize your work?",
    ],
    InterviewCategory.TESTCASE: [
        "Walk me through how you would test a login feature.",
        "How do you approach testing a new application?",
        "What is the difference between functional and non-functional testing?",
        "Describe your experience with test automation.",
        "How do you prioritize test cases?",
        "What tools do you use for testing?",
        "How do you handle bug reporting and tracking?",
        "Describe a challenging bug you found and fixed.",
        "What is your approach to regression testing?",
        "How do you test APIs?",
        "What is your experience with performance testing?",
        "How do you ensure test coverage?",
        "Describe your experience with mobile app testing.",
        "How do you handle testing in agile environments?",
        "What is your approach to user acceptance testing?",
    ],
}

MAX_QUESTIONS = 15


def parse_category(value: str | InterviewCategory) -> InterviewCategory | None:
    """Map a raw category tag to an InterviewCategory, or None if unknown."""
    if isinstance(value, InterviewCategory):
        return value
    try:
        return InterviewCategory(str(value).strip().lower())
    except ValueError:
        return None


def get_fallback_questions(category: str | InterviewCategory) -> list[str]:
    """
    Get the fixed question set for a category.

    Unknown categories use the HR set. A fresh list is returned so callers
    may keep it without aliasing the catalog.
    """
    resolved = parse_category(category) or InterviewCategory.HR
    return list(FALLBACK_QUESTIONS[resolved][:MAX_QUESTIONS])
