"""Export a room's narrative to various formats."""

from datetime import datetime, timezone
from typing import Any

from .session import (
    Session,
    Statement,
    get_narrative,
    is_agreed,
    is_resolved,
)


def statement_status(statement: Statement) -> str:
    """Describe where a statement stands.

    Returns:
        "agreed", "disagreed" or "pending"
    """
    if not is_resolved(statement):
        return "pending"
    return "agreed" if is_agreed(statement) else "disagreed"


def vote_tally(statement: Statement) -> dict[str, int]:
    """Count agree, disagree and outstanding votes on a statement."""
    agree = sum(1 for v in statement.responses.values() if v)
    disagree = sum(1 for v in statement.responses.values() if not v)
    waiting = sum(1 for p in statement.present if p not in statement.responses)
    return {"agree": agree, "disagree": disagree, "waiting": waiting}


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def export_to_markdown(
    room_id: str,
    session: Session,
    exported_at: datetime | None = None,
) -> str:
    """Export a room's session to Markdown.

    The narrative comes first, followed by a table of every statement.

    Args:
        room_id: Room identifier shown in the header
        session: Session to export
        exported_at: Timestamp for the header (defaults to now, UTC)

    Returns:
        Markdown-formatted string
    """
    exported_at = exported_at or datetime.now(timezone.utc)
    lines: list[str] = []

    lines.append(f"# Common Ground: {room_id}")
    lines.append("")
    lines.append(f"*Exported on {exported_at.strftime('%Y-%m-%d %H:%M UTC')}*")
    lines.append("")

    lines.append("## Narrative")
    lines.append("")
    narrative = get_narrative(session)
    if narrative:
        for text in narrative:
            lines.append(f"- {text}")
    else:
        lines.append("*Nothing agreed yet.*")
    lines.append("")

    if session.statements:
        lines.append("## All Statements")
        lines.append("")
        lines.append("| # | Statement | Status | Agree | Disagree | Waiting |")
        lines.append("|---|-----------|--------|-------|----------|---------|")
        for index, statement in enumerate(session.statements):
            tally = vote_tally(statement)
            marker = " (live)" if index == session.live_statement_index else ""
            lines.append(
                f"| {index + 1} | {_escape_cell(statement.text)} "
                f"| {statement_status(statement)}{marker} "
                f"| {tally['agree']} | {tally['disagree']} | {tally['waiting']} |"
            )
        lines.append("")

    return "\n".join(lines)


def export_to_json(room_id: str, session: Session) -> dict[str, Any]:
    """Export a room's session to a JSON-serialisable dict.

    Args:
        room_id: Room identifier
        session: Session to export

    Returns:
        Dict with the raw session, the narrative and per-statement status
    """
    return {
        "room_id": room_id,
        "session": session.to_dict(),
        "narrative": get_narrative(session),
        "statements": [
            {
                "index": index,
                "text": statement.text,
                "created_by": statement.created_by,
                "status": statement_status(statement),
                "tally": vote_tally(statement),
            }
            for index, statement in enumerate(session.statements)
        ],
    }
