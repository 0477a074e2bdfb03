from __future__ import annotations

import io

from smux.progress import SwitchProgress
from smux.prompts import ConsolePrompter, is_affirmative


def test_is_affirmative_accepts_only_yes() -> None:
    assert is_affirmative("y") is True
    assert is_affirmative(" YES ") is True
    assert is_affirmative("") is False
    assert is_affirmative("n") is False
    assert is_affirmative("yep") is False


def test_console_confirm_prints_prompt_and_reads_answer() -> None:
    stream = io.StringIO()
    prompter = ConsolePrompter(input_func=lambda: "yes", stream=stream)

    assert prompter.confirm("Switch?") is True
    assert stream.getvalue() == "Switch? (y/N)\n"


def test_console_prompter_treats_eof_as_empty() -> None:
    def raise_eof() -> str:
        raise EOFError

    prompter = ConsolePrompter(input_func=raise_eof, stream=io.StringIO())

    assert prompter.confirm("Switch?") is False
    assert prompter.ask("URLs:") == ""


def test_console_ask_strips_answer() -> None:
    prompter = ConsolePrompter(input_func=lambda: "  a,b  ", stream=io.StringIO())
    assert prompter.ask("URLs:") == "a,b"


def test_switch_progress_records_events_in_order() -> None:
    progress = SwitchProgress()
    progress.record_started("browser-url", "https://a.test")
    progress.record_error("browser-url", "failed")
    progress.record_skipped("restart", "manual")
    progress.record_success("terminal", "/srv")

    assert [(event.step, event.state) for event in progress.events] == [
        ("browser-url", "started"),
        ("browser-url", "error"),
        ("restart", "skipped"),
        ("terminal", "success"),
    ]
