"""Plain-text summary of an archived trip, for sharing."""
from datetime import datetime

from shoplist.domain.ShoppingSession import ShoppingSession


def session_summary_text(session: ShoppingSession) -> str:
    when = datetime.fromtimestamp(session.date / 1000).strftime("%Y-%m-%d %H:%M")
    lines = [
        f"Shopping Session: {session.list_name}",
        f"Date: {when}",
        f"Total: ${session.total:.2f}",
        "",
        "Items:",
    ]
    lines.extend(f"• {item.name}: ${item.price:.2f}" for item in session.items)
    return "\n".join(lines)
