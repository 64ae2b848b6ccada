"""
COMMANDS - Write operations (CQRS)

Subfolders:
- conversations/ → create, submit_response, regenerate_question,
                   regenerate_summary, retry_question, retry_summary, delete
"""
