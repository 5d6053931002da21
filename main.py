from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict

import uvicorn
from dotenv import load_dotenv

from storeagent.api import create_app
from storeagent.config import configure_logging, load_app_config
from storeagent.errors import StoreAgentError
from storeagent.factory import Services, build_services


# --------------------------------------------------------------------------------------
# Commands
# --------------------------------------------------------------------------------------


def serve(services: Services, cfg: Dict[str, Any], host: str | None, port: int | None) -> None:
    """Run the HTTP API with uvicorn."""
    api_cfg = cfg.get("api", {}) or {}
    app = create_app(
        services.agent,
        services.sessions,
        prefix=api_cfg.get("prefix", ""),
    )
    uvicorn.run(
        app,
        host=host or api_cfg.get("host", "127.0.0.1"),
        port=port or int(api_cfg.get("port", 3001)),
    )


def interactive_chat(services: Services, session_id: str | None) -> None:
    """
    Simple terminal chat loop against one session.

    The session keeps running until:
      - user types /exit or /quit
      - or presses Ctrl+C.
    """
    session_id = services.sessions.resolve(session_id)

    print("\n[Interactive chat started]")
    print("Session :", session_id)
    print("Provider:", ", ".join(p.label for p in services.router.plan()) or "(none)")
    print("Type /exit or press Ctrl+C to end the session.\n")

    while True:
        try:
            user_input = input("You> ").strip()
            if not user_input:
                continue

            if user_input.lower() in {"/exit", "/quit"}:
                print("Bye")
                break

            try:
                reply = services.agent.handle_message(session_id, user_input)
            except StoreAgentError as exc:
                print(f"[error] {exc}")
                continue

            for call in reply.function_calls:
                print(f"  * {call['function']}")
            print(f"Assistant [{reply.provider}]> ", reply.text)
        except KeyboardInterrupt:
            print("\n[Session interrupted by user, exiting chat]")
            break


def print_history(services: Services, session_id: str) -> None:
    for turn in services.sessions.history(session_id):
        print(f"[{turn.created_at}] {turn.role}: {turn.text}")


def print_actions(services: Services, session_id: str) -> None:
    for action in services.sessions.actions(session_id):
        print(f"[{action.created_at}] {action.tool_name} {json.dumps(action.arguments)}")


# --------------------------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------------------------


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Storefront agent: tool-calling store operator with provider fallback."
    )
    parser.add_argument(
        "--config",
        required=True,
        help="Path to config.yaml file.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve: HTTP API
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument("--host", help="Bind address (default from config).")
    serve_parser.add_argument("--port", type=int, help="Bind port (default from config).")

    # chat: interactive loop
    chat_parser = subparsers.add_parser("chat", help="Interactive chat session.")
    chat_parser.add_argument(
        "--session",
        help="Session id to continue; a new one is issued if omitted.",
    )

    # history / actions: read-only inspection
    history_parser = subparsers.add_parser("history", help="Print a session's turns.")
    history_parser.add_argument("session", help="Session id.")

    actions_parser = subparsers.add_parser("actions", help="Print a session's tool invocations.")
    actions_parser.add_argument("session", help="Session id.")

    return parser.parse_args(argv)


# --------------------------------------------------------------------------------------
# main()
# --------------------------------------------------------------------------------------


def main() -> None:
    # Load environment variables from .env (if present)
    load_dotenv()

    args = parse_args(sys.argv[1:])

    config = load_app_config(args.config)
    configure_logging((config.get("logging", {}) or {}).get("level", "INFO"))

    services = build_services(config)

    if args.command == "serve":
        serve(services, config, args.host, args.port)
        return

    if args.command == "chat":
        interactive_chat(services, args.session)
        return

    if args.command == "history":
        print_history(services, args.session)
        return

    if args.command == "actions":
        print_actions(services, args.session)
        return

    # Should never reach here
    raise SystemExit(f"Unknown command: {args.command!r}")


if __name__ == "__main__":
    main()
