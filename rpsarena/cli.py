"""
RPS Arena CLI - Command-line interface for the session engine.

Usage:
    rpsarena play [--server URL] [--token T | --guest] [--casual]
    rpsarena practice-server [--host H] [--port P] [--round-timeout S] [--seed N]

In `play`, type commands at the prompt:
    queue        join the matchmaking queue
    leave        leave the queue
    r / p / s    lock rock, paper or scissors for this round
    reset        back to the menu (after a match or a failure)
    quit         disconnect and exit
"""

import argparse
import asyncio
import logging
import os
import sys

from .config import ClientConfig, PracticeConfig, DEFAULT_SERVER_URL
from .protocol import Gesture
from .presentation import SessionView

PLAY_HELP = "Commands: queue | leave | r/p/s | reset | quit"

GESTURE_SHORTCUTS = {
    "r": Gesture.ROCK,
    "p": Gesture.PAPER,
    "s": Gesture.SCISSORS,
}

# Countdown values worth printing
_ANNOUNCED_SECONDS = {10, 5, 3, 2, 1, 0}


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "play":
        sys.exit(cmd_play(args))
    elif args.command == "practice-server":
        cmd_practice_server(args)
    else:
        parser.print_help()
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RPS Arena - real-time rock-paper-scissors client",
        prog="rpsarena",
    )
    parser.add_argument("--log-level", default="warning", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Connect and play matches")
    play_parser.add_argument("--server", default=DEFAULT_SERVER_URL, help="Server base URL")
    identity = play_parser.add_mutually_exclusive_group()
    identity.add_argument(
        "--token",
        default=os.getenv("RPSARENA_TOKEN"),
        help="Identity token (default: $RPSARENA_TOKEN)",
    )
    identity.add_argument("--guest", action="store_true", help="Play without an identity (casual only)")
    play_parser.add_argument("--casual", action="store_true", help="Queue for unranked matches")

    # Practice server command
    practice_parser = subparsers.add_parser("practice-server", help="Run the local practice server")
    practice_parser.add_argument("--host", default="127.0.0.1")
    practice_parser.add_argument("--port", type=int, default=8080)
    practice_parser.add_argument("--round-timeout", type=int, default=PracticeConfig.round_timeout_secs)
    practice_parser.add_argument("--seed", type=int, default=None, help="Bot random seed")

    return parser


def parse_gesture(text: str):
    """Map `r`, `rock`, `ROCK`, ... to a Gesture; None if not a gesture."""
    text = text.strip().lower()
    if text in GESTURE_SHORTCUTS:
        return GESTURE_SHORTCUTS[text]
    try:
        return Gesture(text)
    except ValueError:
        return None


def describe(view: SessionView) -> list[str]:
    """Render a view as terminal lines."""
    lines = []
    if view.failure:
        lines.append(f"!! {view.failure} (type 'reset')")
        return lines

    if view.phase == "idle":
        lines.append("Idle. Type 'queue' to find an opponent.")
    elif view.phase == "queued":
        lines.append(f"Waiting for an opponent ({'ranked' if view.ranked else 'casual'})...")
    elif view.phase == "playing":
        opponent = f"{view.opponent.username} ({view.opponent.rating})" if view.opponent else "?"
        lines.append(
            f"Round {view.current_round} vs {opponent} | "
            f"score {view.my_score}-{view.opponent_score} | {view.seconds_remaining}s"
        )
        if view.my_choice:
            lines.append(f"  You chose {view.my_choice}.")
        elif view.countdown_expired:
            lines.append("  Time is up, waiting for the server...")
        else:
            lines.append("  Choose: r / p / s")
        if view.opponent_has_chosen:
            lines.append("  Opponent has chosen.")
    elif view.phase == "round_result" and view.last_round:
        r = view.last_round
        lines.append(
            f"Round {r.round}: {r.my_choice} vs {r.opponent_choice} -> {r.outcome_label} "
            f"({r.my_score}-{r.opponent_score})"
        )
    elif view.phase == "match_complete" and view.match:
        m = view.match
        line = f"Match {m.result.upper()} {m.my_score}-{m.opponent_score}"
        if m.rating_change_label is not None:
            line += f" | rating {m.rating_change_label} -> {m.new_rating}"
        lines.append(line)
        for row in view.moves:
            lines.append(f"  R{row.round}: {row.my_choice:>8} vs {row.opponent_choice:<8} {row.outcome_label}")
        lines.append("Type 'queue' to play again.")
    return lines


class TerminalRenderer:
    """Prints the session whenever something a player cares about changes."""

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self._last_key = None

    def render(self, state) -> None:
        view = SessionView.from_state(state)
        key = (
            view.phase,
            view.current_round,
            view.my_choice,
            view.opponent_has_chosen,
            len(view.moves),
            view.failure,
        )
        if key == self._last_key and view.seconds_remaining not in _ANNOUNCED_SECONDS:
            return
        self._last_key = key
        for line in describe(view):
            print(line, file=self.out)


async def run_command(machine, command: str, ranked: bool = True) -> bool:
    """Apply one prompt command. Returns False when the player wants to quit."""
    command = command.strip().lower()
    if not command:
        return True
    if command in ("quit", "exit"):
        return False
    if command in ("help", "?"):
        print(PLAY_HELP)
    elif command in ("queue", "q"):
        await machine.join_queue(ranked=ranked)
    elif command in ("leave", "l"):
        await machine.leave_queue()
    elif command in ("reset", "x"):
        machine.reset()
    elif parse_gesture(command) is not None:
        await machine.submit_choice(parse_gesture(command))
    else:
        print(f"Unknown command: {command}. {PLAY_HELP}")
    return True


def cmd_play(args) -> int:
    """Connect to the server and play interactively."""
    config = ClientConfig(server_url=args.server)
    token = None if args.guest else args.token
    try:
        return asyncio.run(_play(config, token, ranked=not args.casual, guest=args.guest))
    except KeyboardInterrupt:
        return 0


async def _play(config: ClientConfig, token, ranked: bool, guest: bool = False) -> int:
    from .session import SessionMachine
    from .transport import Transport

    transport = Transport(config)
    handle = await transport.connect(token, allow_anonymous=guest)
    if handle is None:
        print("Error: no identity token. Pass --token, set RPSARENA_TOKEN, or use --guest.")
        return 2
    if not transport.connected:
        print(f"Error: could not connect to {config.endpoint_url}")
        return 1

    machine = SessionMachine(transport, handle)
    machine.subscribe(TerminalRenderer().render)
    if machine.is_guest:
        print("Playing as guest: casual matches only.")
    print(PLAY_HELP)

    loop = asyncio.get_running_loop()
    try:
        while transport.connected:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not await run_command(machine, line, ranked=ranked):
                break
        if not transport.connected:
            print("Connection lost.")
    finally:
        await transport.close(handle)
    return 0


def cmd_practice_server(args):
    """Run the practice server under uvicorn."""
    try:
        import uvicorn
    except ImportError:
        raise ImportError(
            "uvicorn not installed. Install with: pip install 'rpsarena[practice]'"
        )
    from .practice import create_app

    config = PracticeConfig(round_timeout_secs=args.round_timeout, bot_seed=args.seed)
    print(f"Practice server on ws://{args.host}:{args.port}/ws")
    uvicorn.run(create_app(config), host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
