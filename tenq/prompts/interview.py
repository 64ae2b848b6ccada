"""
Interview prompts: question generation and the closing summary.
"""

from tenq.domain.entities.command import Command
from tenq.domain.entities.conversation import TOTAL_QUESTIONS
from tenq.domain.entities.message import (
    Message,
    QuestionMessage,
    ResponseMessage,
)


class InterviewPrompts:
    """Prompts for the ten-question reflection interview."""

    QUESTION_SYSTEM = """You are a thoughtful, warm interviewer guiding a person through a ten-question self-reflection on a topic they chose.

RULES:
1. Ask exactly ONE question - no preamble, no numbering, no commentary
2. Build on what the person has already said; reference their own words where it helps
3. Keep the question open-ended and under 40 words
4. Never give advice, judge, or diagnose
5. Follow the guidance for the current command closely"""

    SUMMARY_SYSTEM = """You are a thoughtful interviewer closing a ten-question self-reflection.

Write a cohesive summary of the conversation:
1. Two to three paragraphs of flowing prose - no bullet points or headings
2. Address the person directly ("you")
3. Capture the key themes, feelings and insights in their own terms
4. End with the concrete next step or takeaway they named, if any
5. Do not add advice they did not arrive at themselves"""

    @staticmethod
    def command_guidance(command: Command) -> str:
        return (
            f"Current command (Question {command.number}/{TOTAL_QUESTIONS}): "
            f"{command.name}\n{command.prompt}"
        )

    @staticmethod
    def build_question_messages(
        command: Command, history: list[Message]
    ) -> list[dict]:
        """System prompt, command guidance, replayed history, then the ask."""
        messages = [
            {"role": "system", "content": InterviewPrompts.QUESTION_SYSTEM},
            {"role": "system", "content": InterviewPrompts.command_guidance(command)},
        ]
        for message in history:
            if isinstance(message, QuestionMessage):
                messages.append({"role": "assistant", "content": message.content})
            elif isinstance(message, ResponseMessage):
                messages.append({"role": "user", "content": message.content})
        messages.append(
            {
                "role": "user",
                "content": (
                    f"Generate question {command.number} of {TOTAL_QUESTIONS} "
                    "following the command guidance above."
                ),
            }
        )
        return messages

    @staticmethod
    def format_transcript(history: list[Message]) -> str:
        parts = []
        for message in history:
            if isinstance(message, QuestionMessage):
                parts.append(f"Question {message.question_number}: {message.content}\n\n")
            elif isinstance(message, ResponseMessage):
                parts.append(f"Response: {message.content}\n\n")
        return "".join(parts)

    @staticmethod
    def build_summary_messages(history: list[Message]) -> list[dict]:
        transcript = InterviewPrompts.format_transcript(history)
        return [
            {"role": "system", "content": InterviewPrompts.SUMMARY_SYSTEM},
            {
                "role": "user",
                "content": (
                    f"Here is the complete conversation:\n\n{transcript}\n\n"
                    "Please provide a cohesive 2-3 paragraph summary."
                ),
            },
        ]
