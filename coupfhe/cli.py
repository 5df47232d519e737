"""
CoupFHE CLI - Command-line interface for the engine.

Usage:
    coupfhe serve [--host H] [--port P]       Run the HTTP API
    coupfhe simulate [--players N] [--seed S]  Play a random game to the end
    coupfhe show <ledger_dir>                  Print a game stored in a file ledger
"""

import argparse
import logging
import random
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="CoupFHE - Rule engine for Coup with sealed roles",
        prog="coupfhe",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a random game to the end")
    simulate_parser.add_argument("--players", type=int, default=3, help="Number of players")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate_parser.add_argument("--ledger-dir", help="Persist the game to this directory")
    simulate_parser.add_argument("--max-turns", type=int, default=500)

    # Show command
    show_parser = subparsers.add_parser("show", help="Print a game stored in a file ledger")
    show_parser.add_argument("ledger_dir", help="Directory of the file ledger")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "show":
        cmd_show(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn
    from .api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)


def cmd_simulate(args):
    """Play random legal moves until someone wins."""
    from .config import EngineConfig
    from .confidential import KeyedConfidentialStore
    from .engine_core import ActionStatus, GameMachine, GamePhase, get_action_spec
    from .ledger import FileLedger, GameRepository

    if args.players < 2:
        print("Error: need at least 2 players")
        sys.exit(1)

    rng = random.Random(args.seed)
    config = EngineConfig(seed=args.seed, max_players=max(args.players, 2))
    repository = GameRepository(FileLedger(args.ledger_dir)) if args.ledger_dir else None
    game = GameMachine(
        "simulation",
        store=KeyedConfidentialStore(),
        config=config,
        repository=repository,
    )

    players = [f"player_{i + 1}" for i in range(args.players)]
    for player_id in players:
        game.join(player_id)
    game.start()

    for _ in range(args.max_turns):
        state = game.snapshot()
        if state.phase == GamePhase.FINISHED:
            break

        actor = state.current_player.player_id
        result = game.submit_action(rng.choice(game.legal_actions(actor)))

        while result.awaiting_responses:
            responder = rng.choice(game.eligible_responders())
            action = result.action
            spec = get_action_spec(action.kind)
            roll = rng.random()
            if roll < 0.15 and (action.status == ActionStatus.BLOCKED or spec.challengeable):
                result = game.submit_challenge(responder)
            elif roll < 0.3 and action.status == ActionStatus.PENDING and spec.blockable and (
                not spec.requires_target or responder == action.target
            ):
                result = game.submit_block(responder, rng.choice(sorted(spec.blockable_by, key=lambda r: r.value)))
            else:
                result = game.allow(responder)

        for change in result.state_changes:
            print(f"  {change}")

    _print_state(game.snapshot())


def cmd_show(args):
    """Print a game restored from a file ledger."""
    from .ledger import FileLedger, GameRepository

    state = GameRepository(FileLedger(args.ledger_dir)).load()
    if state is None:
        print(f"Error: No game found in {args.ledger_dir}")
        sys.exit(1)
    _print_state(state)


def _print_state(state):
    print(f"\nGame {state.game_id}: {state.phase.value}")
    if state.winner:
        print(f"Winner: {state.winner}")
    for player in state.players:
        revealed = ", ".join(r.value for r in player.revealed_roles) or "-"
        status = "alive" if player.alive else "out"
        print(f"  {player.player_id}: {player.coins} coins, "
              f"{player.sealed_count} sealed, revealed [{revealed}] ({status})")
    print(f"Actions logged: {len(state.action_log)}")


if __name__ == "__main__":
    main()
