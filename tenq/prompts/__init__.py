"""
Centralized prompt management for question and summary generation.
"""

from tenq.prompts.interview import InterviewPrompts

__all__ = ["InterviewPrompts"]
