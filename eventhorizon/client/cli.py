import os
import shlex
from typing import List
from .api_client import DEFAULT_API_URL, EventHorizonClient
from .board import EventBoard

HELP = """Comandos:
  list                               lista eventos
  add <nome> <data> <local>          cria evento (data ISO 8601)
  edit <id> <campo>=<valor> ...      altera nome/data/local de um evento
  del <id>                           remove evento
  attendees <id>                     lista inscritos do evento
  register <id> <nome> <email>       inscreve participante
  sair | exit                        encerra"""


def _render_events(board: EventBoard) -> str:
    if not board.events:
        return "Nenhum evento cadastrado."
    return "\n".join(
        f"[{e['id']}] {e['name']} | {e['date']} | {e['location']}" for e in board.events
    )


def _render_attendees(board: EventBoard) -> str:
    if not board.attendees:
        return "Nenhum inscrito."
    return "\n".join(f"[{a['id']}] {a['name']} ({a['email']})" for a in board.attendees)


def _outcome(board: EventBoard, ok: bool, details: str = "") -> str:
    if not ok:
        return f"Erro: {board.error}"
    lines: List[str] = [board.success] if board.success else []
    if details:
        lines.append(details)
    return "\n".join(lines)


def handle_command(board: EventBoard, line: str) -> str:
    """
    Executa um comando do terminal e retorna o texto a exibir.
    """
    try:
        parts = shlex.split(line)
    except ValueError as e:
        return f"Erro: {e}"
    if not parts:
        return ""

    command, args = parts[0].lower(), parts[1:]
    try:
        if command == "list" and not args:
            return _outcome(board, board.refresh(), _render_events(board))
        if command == "add" and len(args) == 3:
            return _outcome(board, board.submit_event(*args), _render_events(board))
        if command == "edit" and len(args) >= 2:
            changes = dict(arg.split("=", 1) for arg in args[1:])
            unknown = set(changes) - {"name", "date", "location"}
            if unknown:
                return f"Erro: campos desconhecidos: {', '.join(sorted(unknown))}"
            ok = board.submit_event(
                changes.get("name"),
                changes.get("date"),
                changes.get("location"),
                editing_id=int(args[0]),
            )
            return _outcome(board, ok, _render_events(board))
        if command == "del" and len(args) == 1:
            return _outcome(board, board.delete_event(int(args[0])), _render_events(board))
        if command == "attendees" and len(args) == 1:
            return _outcome(board, board.select_event(int(args[0])), _render_attendees(board))
        if command == "register" and len(args) == 3:
            ok = board.register_attendee(args[1], args[2], event_id=int(args[0]))
            return _outcome(board, ok, _render_attendees(board))
    except ValueError:
        return f"Erro: argumentos inválidos para '{command}'"

    return HELP


def main() -> None:
    base_url = os.getenv("EVENTHORIZON_API_URL", DEFAULT_API_URL)
    board = EventBoard(EventHorizonClient(base_url))
    print(HELP)

    while True:
        msg = input("> ")
        if msg.strip().lower() in ["sair", "exit"]:
            break
        print(handle_command(board, msg))


if __name__ == "__main__":
    main()
