# Role: Local developer CLI to run a Langflow flow without the web UI.
# Talks to Langflow directly through FlowRunner; /stream toggles SSE streaming so updates print as they arrive.

from __future__ import annotations

import argparse
import json
import os
import threading

import langflow_proxy.config
langflow_proxy.config.load_env()

from langflow_proxy.config import langflow_config_from_env
from langflow_proxy.core.flow_runner import FlowRunner
from langflow_proxy.errors import LangflowError
from langflow_proxy.logging_config import setup_logging
from langflow_proxy.models.flow_request import FlowRequest
from langflow_proxy.models.flow_response import FlowResponse
from langflow_proxy.tools.langflow_client import LangflowClient


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with a Langflow flow from the terminal")
    parser.add_argument("--flow-id", default=os.getenv("LANGFLOW_FLOW_ID"))
    parser.add_argument("--flow-group-id", default=os.getenv("LANGFLOW_FLOW_GROUP_ID"))
    parser.add_argument("--stream", action="store_true", help="start with streaming enabled")
    return parser.parse_args()


def _run_streaming(runner: FlowRunner, request: FlowRequest) -> None:
    finished = threading.Event()

    def on_update(data: object) -> None:
        chunk = data.get("chunk") if isinstance(data, dict) else None
        print(chunk if isinstance(chunk, str) else json.dumps(data), end="", flush=True)

    def on_close(reason: str) -> None:
        print(f"\n[{reason}]")
        finished.set()

    def on_error(err: Exception) -> None:
        print(f"\n[error: {err}]")
        finished.set()

    run = runner.start_flow(request, on_update=on_update, on_close=on_close, on_error=on_error)
    if run.session is None:
        _print_response(run.response)
        return

    try:
        finished.wait()
    except KeyboardInterrupt:
        run.session.close()
        run.session.wait(5)


def _print_response(response: FlowResponse) -> None:
    text = response.message_text()
    print(f"\nAssistant: {text if text is not None else json.dumps(response.to_payload())}")


def main() -> None:
    # 1) Build FlowRunner from env config
    # 2) Keep flow ids + stream toggle across turns
    # 3) Route user input -> FlowRunner -> print assistant output
    args = _parse_args()
    setup_logging()

    if not args.flow_id or not args.flow_group_id:
        print("Missing flow ids: pass --flow-id/--flow-group-id or set LANGFLOW_FLOW_ID/LANGFLOW_FLOW_GROUP_ID")
        return

    runner = FlowRunner(LangflowClient(langflow_config_from_env()))
    stream = args.stream

    print("Langflow CLI")
    print("Commands: /stream (toggle streaming), /exit")
    print("-" * 50)

    while True:
        try:
            user_message = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_message:
            continue

        cmd = user_message.lower()

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            return

        if cmd in {"/stream", "stream"}:
            stream = not stream
            print(f"streaming: {'on' if stream else 'off'}")
            continue

        request = FlowRequest(
            flow_id=args.flow_id,
            flow_group_id=args.flow_group_id,
            input_value=user_message,
            stream=stream,
        )
        try:
            if stream:
                _run_streaming(runner, request)
            else:
                _print_response(runner.run_flow(request))
        except LangflowError as e:
            print(f"\nError: {e}")


if __name__ == "__main__":
    main()
