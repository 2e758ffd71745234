from innersense.session_manager import USER

RECENT_MESSAGES = 4
SUMMARY_CHARS = 50

_ROLE_LABELS = {USER: "User"}


def format_message(message) -> str:
    return f"{_ROLE_LABELS.get(message.role, 'Assistant')}: {message.content}"


def summarize_old_messages(messages) -> str:
    """
    One-line digest of older turns: the first SUMMARY_CHARS characters
    of each message. No model call is involved.
    """
    if not messages:
        return ""
    topics = ", ".join(m.content[:SUMMARY_CHARS] for m in messages)
    return f"[Earlier conversation covered: {topics}...]"


def compress_history(messages) -> str:
    """
    Render prior turns as a bounded context block.

    Up to RECENT_MESSAGES messages are kept verbatim. Anything older is
    folded into a single summary line placed before the recent ones.
    """
    if not messages:
        return ""

    if len(messages) <= RECENT_MESSAGES:
        return "\n".join(format_message(m) for m in messages)

    older = messages[:-RECENT_MESSAGES]
    recent = messages[-RECENT_MESSAGES:]
    lines = [summarize_old_messages(older)]
    lines.extend(format_message(m) for m in recent)
    return "\n".join(lines)
