"""
Offline console demo: runs a full delivery support call without a phone line.

Typed input stands in for the speech recognizer's transcript. The real
conversation engine, session store, intent classifier and offer sequence
are used; only the telephony transport is missing.

Usage:
    python console_demo.py
    python console_demo.py --scenario retention
    python console_demo.py --scenario transfer
"""

import argparse
import uuid
from typing import Optional

from delivery_agent.config import settings
from delivery_agent.conversation.engine import ConversationEngine
from delivery_agent.schemas.call_schema import (
    Action,
    CallEndEvent,
    CallStartEvent,
    HangupAction,
    TurnEvent,
)

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Simulates one phone call in the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "retention": [
            "one two three",
            "I want to return it",
            "no",
            "nope, not interested",
            "no",
            "no",
            "yes",
        ],
        "accept": [
            "my order is seven eight nine",
            "I'd like a refund",
            "hmm I don't know",
            "okay I'll take it",
        ],
        "keep": [
            "",
            "order one two three",
            "I don't want to keep it",
            "actually just keep it",
        ],
        "transfer": [
            "1 2 3",
            "let me talk to a human",
        ],
        "unknown": [
            "nine nine nine",
            "the second one",
            "one two three",
            "keep it",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, engine: Optional[ConversationEngine] = None) -> None:
        self.engine = engine or ConversationEngine.from_settings()
        self.call_id = f"CONSOLE-{uuid.uuid4().hex[:8]}"
        self.stage_hint: Optional[str] = None
        self.trace: list[str] = []
        self.finished = False

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Assistant]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _render(self, action: Action) -> None:
        self.agent_say(action.speak)
        if isinstance(action, HangupAction):
            self.finished = True
            self.system_log(f"Hang up (disposition: {action.disposition.value})")
        else:
            self.stage_hint = action.next_stage_hint
            self.system_log(f"Stage: {action.next_stage_hint}  hints: {action.vocabulary_hints}")

    def _start(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  DELIVERY ASSISTANT - {title}{RESET}")
        print(f"{BOLD}  Agent: {settings.agent_name}  Call: {self.call_id}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()
        self._render(self.engine.start_call(CallStartEvent(call_id=self.call_id)))
        self.trace.append(self.stage_hint)

    def _turn(self, text: str) -> None:
        result = self.engine.process_turn(
            TurnEvent(call_id=self.call_id, transcript=text, requested_stage=self.stage_hint)
        )
        self.system_log(f"Outcome: {result.outcome.value}")
        self.trace.append(result.session.stage.value)
        self._render(result.action)

    def _finish(self) -> None:
        self.engine.end_call(CallEndEvent(call_id=self.call_id))
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Call complete.{RESET}")
        print(f"{DIM}  Stage trace: {' -> '.join(self.trace)}{RESET}")
        print(self.engine.metrics.format_report())

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if steps is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._start(f"Scenario: {scenario}")
        for step in steps:
            if self.finished:
                break
            print(f"\n{BLUE}[Caller] {RESET}{step or DIM + '(silence)' + RESET}")
            self._turn(step)
        self._finish()

    def run(self) -> None:
        self._start("Console Demo (type 'quit' to exit, empty line = silence)")

        while not self.finished:
            user_input = input(f"\n{BLUE}[Caller] {RESET}").strip()
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                break

            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.agent_say("That was quite long. Could you keep it brief for me?")
                continue

            self._turn(user_input)

        self._finish()


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
