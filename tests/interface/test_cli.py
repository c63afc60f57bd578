"""Tests for CLI commands: card operations, preview, deck config files and config show."""

import json
import logging

import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from anamnesis.interface.cli import app, humanize_error
from anamnesis.interface.schemas import CardModel

runner = CliRunner()

NEW_CARD = {"card_type": "new", "card_queue": "new", "due": 3}
REVIEW_CARD = {
    "card_type": "review",
    "card_queue": "review",
    # far in the future, so the card is never overdue
    "due": 99_999,
    "interval": 100,
    "ease_factor": 2500,
    "reps": 10,
}


@pytest.fixture
def card_file(tmp_path, mock_home):
    """Write a card to a JSON file and return its path."""

    def _write(data, name="card.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path

    return _write


def invoke(*args, **kwargs):
    return runner.invoke(app, [str(a) for a in args], **kwargs)


# --- Help ---


def test_cli_help():
    result = invoke("--help")
    assert result.exit_code == 0
    assert "answer" in result.stdout
    assert "preview" in result.stdout
    assert "config" in result.stdout


# --- Answer ---


def test_answer_new_card(card_file):
    result = invoke("answer", card_file(NEW_CARD), "--choice", "ok")

    assert result.exit_code == 0, result.output
    card = json.loads(result.stdout)
    assert card["card_type"] == "learn"
    assert card["reps"] == 1


def test_answer_review_card_easy(card_file):
    result = invoke("answer", card_file(REVIEW_CARD), "-c", "easy")

    assert result.exit_code == 0, result.output
    card = json.loads(result.stdout)
    assert card["card_type"] == "review"
    assert card["card_queue"] == "review"
    assert card["ease_factor"] == 2650
    assert card["reps"] == 11


def test_answer_reads_stdin(mock_home):
    result = invoke("answer", "-", "-c", "again", input=json.dumps(REVIEW_CARD))

    assert result.exit_code == 0, result.output
    card = json.loads(result.stdout)
    assert card["card_type"] == "relearn"
    assert card["lapses"] == 1


def test_answer_output_is_valid_card(card_file):
    result = invoke("answer", card_file(REVIEW_CARD), "-c", "hard")

    CardModel.model_validate_json(result.stdout).to_domain()


def test_answer_rejects_unknown_choice(card_file):
    result = invoke("answer", card_file(REVIEW_CARD), "-c", "perfect")
    assert result.exit_code != 0


# --- Overrides ---


@pytest.mark.parametrize(
    "command, queue",
    [("bury", "buried"), ("suspend", "suspended")],
)
def test_hide_commands(card_file, command, queue):
    result = invoke(command, card_file(REVIEW_CARD))

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["card_queue"] == queue


def test_unbury(card_file):
    buried = dict(REVIEW_CARD, card_queue="buried")
    result = invoke("unbury", card_file(buried))

    card = json.loads(result.stdout)
    assert card["card_queue"] == "new"
    assert card["card_type"] == "review"


def test_unsuspend(card_file):
    suspended = dict(REVIEW_CARD, card_queue="suspended")
    result = invoke("unsuspend", card_file(suspended))

    assert json.loads(result.stdout)["card_queue"] == "review"


def test_reset(card_file):
    result = invoke("reset", card_file(REVIEW_CARD), "--position", 5)

    assert result.exit_code == 0, result.output
    card = json.loads(result.stdout)
    assert card["card_type"] == "new"
    assert card["card_queue"] == "new"
    assert card["due"] == 5
    assert card["interval"] == 0


def test_reschedule(card_file):
    result = invoke("reschedule", card_file(NEW_CARD), "--min-days", 3, "--max-days", 3)

    assert result.exit_code == 0, result.output
    card = json.loads(result.stdout)
    assert card["card_type"] == "review"
    assert card["interval"] == 3


def test_reschedule_is_reproducible_with_seed(card_file):
    path = card_file(NEW_CARD)
    args = ("--seed", 7, "reschedule", path, "--min-days", 1, "--max-days", 1000)

    first = json.loads(invoke(*args).stdout)
    second = json.loads(invoke(*args).stdout)
    assert first["interval"] == second["interval"]


def test_reschedule_invalid_range(card_file):
    result = invoke("reschedule", card_file(NEW_CARD), "--min-days", 5, "--max-days", 2)

    assert result.exit_code == 1
    assert "Invalid interval range: [5, 2]" in result.output


# --- Bad input ---


def test_illegal_card_state(card_file):
    result = invoke("bury", card_file({"card_type": "new", "card_queue": "review"}))

    assert result.exit_code == 1
    assert "Illegal card state" in result.output


def test_invalid_card_field(card_file):
    result = invoke("bury", card_file(dict(REVIEW_CARD, ease_factor=900)))

    assert result.exit_code == 1
    assert "ease_factor" in result.output


def test_missing_card_file(tmp_path, mock_home):
    result = invoke("bury", tmp_path / "nope.json")

    assert result.exit_code == 1
    assert "Error" in result.output


# --- Preview ---


def test_preview_json(card_file):
    result = invoke("preview", card_file(REVIEW_CARD), "--json")

    assert result.exit_code == 0, result.output
    rows = {row["choice"]: row for row in json.loads(result.stdout)}
    assert list(rows) == ["again", "hard", "ok", "easy"]
    assert rows["again"]["seconds"] == 600
    assert rows["again"]["label"] == "10m"
    assert rows["hard"]["seconds"] == 120 * 86_400
    assert rows["hard"]["label"] == "4mo"


def test_preview_table(card_file):
    result = invoke("preview", card_file(NEW_CARD))

    assert result.exit_code == 0, result.output
    assert "Next intervals" in result.stdout
    assert "10m" in result.stdout


def test_preview_leaves_file_untouched(card_file):
    path = card_file(REVIEW_CARD)
    before = path.read_text()
    invoke("preview", path)

    assert path.read_text() == before


# --- Deck config ---


def test_deck_config_toml(card_file, tmp_path):
    deck = tmp_path / "deck.toml"
    deck.write_text("[deck]\nlearn_steps = []\n")

    result = invoke("--deck-config", deck, "answer", card_file(NEW_CARD), "-c", "ok")

    assert result.exit_code == 0, result.output
    card = json.loads(result.stdout)
    assert card["card_type"] == "review"
    assert card["interval"] == 1


def test_deck_config_from_settings_file(card_file, mock_home):
    settings = mock_home / ".anamnesis.toml"
    settings.write_text("[deck]\nrelearn_steps = []\nlapse_multiplier = 0.5\n")

    result = invoke("answer", card_file(REVIEW_CARD), "-c", "again")

    assert result.exit_code == 0, result.output
    card = json.loads(result.stdout)
    assert card["card_type"] == "review"
    assert card["interval"] == 50


def test_bad_deck_config(card_file, tmp_path):
    deck = tmp_path / "deck.json"
    deck.write_text(json.dumps({"learn_steps": [-1]}))

    result = invoke("--deck-config", deck, "answer", card_file(NEW_CARD), "-c", "ok")

    assert result.exit_code == 1
    assert "learn_steps" in result.output


# --- Verbosity ---


def test_single_verbose_flag_enables_debug(card_file):
    result = invoke("-v", "answer", card_file(NEW_CARD), "--choice", "ok")

    assert result.exit_code == 0, result.output
    assert logging.getLogger().level == logging.DEBUG


def test_default_level_is_info(card_file):
    result = invoke("answer", card_file(NEW_CARD), "--choice", "ok")

    assert result.exit_code == 0, result.output
    assert logging.getLogger().level == logging.INFO


# --- Config ---


def test_config_show(mock_home, monkeypatch):
    (mock_home / ".anamnesis.toml").write_text("rollover_hour = 6\n")
    monkeypatch.setenv("ANAMNESIS_SEED", "12")

    result = invoke("config", "show")

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["rollover_hour"] == 6
    assert data["seed"] == 12
    assert data["deck"]["learn_steps"] == [1.0, 10.0]
    assert data["deck"]["new_card_order"] == 0


def test_config_show_invalid(mock_home, monkeypatch):
    monkeypatch.setenv("ANAMNESIS_ROLLOVER_HOUR", "30")

    result = invoke("config", "show")

    assert result.exit_code == 1
    assert "rollover_hour" in result.output


# --- humanize_error ---


def test_humanize_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        CardModel.model_validate({"reps": -1})

    assert humanize_error(excinfo.value).startswith("reps: ")


def test_humanize_plain_error():
    assert humanize_error(ValueError("boom")) == "boom"
