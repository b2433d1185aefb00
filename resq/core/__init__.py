"""
Core business logic modules for ResQ

Contains:
- Interview Session Machine: State machine for one practice interview
- Generation Orchestrator: Resume upload → question generation flow
- Question Generator / Answer Judge / Transcript Punctuator: AI clients
- Speech Bridge: Speech recognition and synthesis
- Session Manager: Per-user workspaces
"""

from resq.core.interview_session import InterviewSessionMachine, compute_final_score
from resq.core.generation_orchestrator import GenerationOrchestrator
from resq.core.question_generator import QuestionGenerator
from resq.core.answer_judge import AnswerJudge
from resq.core.punctuator import TranscriptPunctuator
from resq.core.speech_bridge import SpeechBridge
from resq.core.session_manager import SessionManager

__all__ = [
    "InterviewSessionMachine",
    "compute_final_score",
    "GenerationOrchestrator",
    "QuestionGenerator",
    "AnswerJudge",
    "TranscriptPunctuator",
    "SpeechBridge",
    "SessionManager",
]
