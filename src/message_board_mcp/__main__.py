"""Allow `python -m message_board_mcp` to invoke the CLI entry-point."""

from typer.main import get_command

from .cli import app


def main() -> None:
    """Dispatch to the Typer CLI without inheriting external argv flags."""
    cmd = get_command(app)
    cmd.main(args=["--help"], prog_name="message-board", standalone_mode=False)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    main()
