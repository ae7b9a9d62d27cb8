from __future__ import annotations

from rich.console import Console

from fixtures import auth_error
from study_tutor.core.store import API_KEY, THEME
from study_tutor.preferences import cli as preferences_cli
from study_tutor.preferences.theme import build_theme, resolve_theme


def make_console() -> Console:
    return Console(record=True, width=100)


def test_key_set_validates_and_masks(offline_context, openai_factory):
    console = make_console()

    code = preferences_cli.key_main(
        ["set", "sk-abcdef123456"],
        context=offline_context,
        console=console,
        client_factory=openai_factory,
    )

    assert code == 0
    assert offline_context.store.get(API_KEY) == "sk-abcdef123456"
    assert openai_factory.last.init_kwargs == {"api_key": "sk-abcdef123456"}
    text = console.export_text()
    assert "sk-a...3456" in text
    assert "abcdef" not in text


def test_key_set_rejected_key_is_not_stored(
    offline_context, openai_factory, capsys
):
    openai_factory.configure = lambda client: client.queue_error(auth_error())

    code = preferences_cli.key_main(
        ["set", "sk-wrong"],
        context=offline_context,
        console=make_console(),
        client_factory=openai_factory,
    )

    assert code == 1
    assert offline_context.store.get(API_KEY) is None
    assert "The API key is not valid" in capsys.readouterr().err


def test_key_set_without_verification(offline_context, openai_factory):
    code = preferences_cli.key_main(
        ["set", "sk-offline", "--no-verify"],
        context=offline_context,
        console=make_console(),
        client_factory=openai_factory,
    )
    assert code == 0
    assert openai_factory.instances == []
    assert offline_context.store.get(API_KEY) == "sk-offline"


def test_key_check_uses_environment(
    offline_context, openai_factory, monkeypatch
):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-environment")
    console = make_console()

    code = preferences_cli.key_main(
        ["check"],
        context=offline_context,
        console=console,
        client_factory=openai_factory,
    )

    assert code == 0
    assert openai_factory.last.init_kwargs["api_key"] == "sk-from-environment"
    assert "API key is valid" in console.export_text()


def test_key_check_without_key(offline_context, openai_factory, capsys):
    code = preferences_cli.key_main(
        ["check"],
        context=offline_context,
        console=make_console(),
        client_factory=openai_factory,
    )
    assert code == 1
    assert "No API key configured" in capsys.readouterr().err
    assert openai_factory.instances == []


def test_key_clear(offline_context):
    offline_context.store.set(API_KEY, "sk-old")
    offline_context.store.set(THEME, "dark")
    first, second = make_console(), make_console()

    preferences_cli.key_main(["clear"], context=offline_context, console=first)
    preferences_cli.key_main(
        ["clear"], context=offline_context, console=second
    )

    assert "Stored API key removed." in first.export_text()
    assert "No stored API key." in second.export_text()
    assert offline_context.store.snapshot() == {THEME: "dark"}


def test_theme_show_and_set(offline_context):
    shown, changed = make_console(), make_console()

    preferences_cli.theme_main([], context=offline_context, console=shown)
    code = preferences_cli.theme_main(
        ["dark"], context=offline_context, console=changed
    )

    assert code == 0
    assert "Theme: system" in shown.export_text()
    assert "Theme: dark" in changed.export_text()
    assert resolve_theme(offline_context.store) == "dark"


def test_unknown_stored_theme_falls_back(offline_context):
    offline_context.store.set(THEME, "neon")
    assert resolve_theme(offline_context.store) == "system"
    assert resolve_theme(None) == "system"


def test_every_theme_defines_the_same_styles():
    names = [set(build_theme(n).styles) for n in ("light", "dark", "system")]
    assert names[0] == names[1] == names[2]
    assert "tutor.correct" in names[0]
