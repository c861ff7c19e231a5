from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from study_quiz.core import config as core_config
from study_quiz.quizzer import config as qcfg


def _write_config(layout_home: Path, body: str) -> Path:
    path = layout_home / "config" / qcfg.CONFIG_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path):
    home = tmp_path / "home"

    result = qcfg.load_config(workspace_path=home, env={})

    config = result.config
    assert result.config_path is None
    assert config.questions_dir == (home / "question_sets").resolve()
    assert config.default_count == 0
    assert config.retry_offset == 4
    assert config.shuffle_options is True
    assert config.log_level == "INFO"
    assert config.verbose is False
    assert result.layout.home == home.resolve()


def test_workspace_config_file_is_loaded(tmp_path):
    home = tmp_path / "home"
    path = _write_config(
        home,
        "[paths]\nquestions_dir = \"sets\"\n"
        "[session]\ndefault_count = 3\nretry_offset = 2\n"
        "shuffle_options = false\n"
        "[logging]\nlevel = \"debug\"\nverbose = true\n",
    )

    result = qcfg.load_config(workspace_path=home, env={})

    config = result.config
    assert result.config_path == path
    assert config.questions_dir == (home / "sets").resolve()
    assert config.default_count == 3
    assert config.retry_offset == 2
    assert config.shuffle_options is False
    assert config.log_level == "DEBUG"
    assert config.verbose is True


def test_precedence_cli_over_env_over_file(tmp_path):
    home = tmp_path / "home"
    _write_config(
        home,
        "[paths]\nquestions_dir = \"from-file\"\n"
        "[session]\nretry_offset = 2\n"
        "[logging]\nlevel = \"ERROR\"\n",
    )
    env = {
        "STUDY_QUIZ_QUESTIONS_DIR": str(tmp_path / "from-env"),
        "STUDY_QUIZ_RETRY_OFFSET": "6",
        "STUDY_QUIZ_LOG_LEVEL": "warning",
    }

    env_only = qcfg.load_config(workspace_path=home, env=env).config
    assert env_only.questions_dir == (tmp_path / "from-env").resolve()
    assert env_only.retry_offset == 6
    assert env_only.log_level == "WARNING"

    cli = qcfg.load_config(
        workspace_path=home,
        env=env,
        overrides=qcfg.ConfigOverrides(
            questions_dir=tmp_path / "from-cli",
            default_count=1,
            shuffle_options=False,
            log_level="debug",
            verbose=True,
        ),
    ).config
    assert cli.questions_dir == (tmp_path / "from-cli").resolve()
    assert cli.default_count == 1
    assert cli.shuffle_options is False
    assert cli.log_level == "DEBUG"
    assert cli.verbose is True
    assert cli.retry_offset == 6


def test_config_env_points_to_file(tmp_path):
    custom = tmp_path / "custom.toml"
    custom.write_text("[session]\ndefault_count = 2\n", encoding="utf-8")

    result = qcfg.load_config(
        workspace_path=tmp_path / "home",
        env={qcfg.CONFIG_ENV: str(custom)},
    )

    assert result.config_path == custom
    assert result.config.default_count == 2


def test_explicit_config_must_exist(tmp_path):
    with pytest.raises(qcfg.QuizzerConfigError, match="not found"):
        qcfg.load_config(
            config_path=tmp_path / "missing.toml",
            workspace_path=tmp_path / "home",
            env={},
        )
    with pytest.raises(qcfg.QuizzerConfigError, match="not found"):
        qcfg.load_config(
            workspace_path=tmp_path / "home",
            env={qcfg.CONFIG_ENV: str(tmp_path / "nope.toml")},
        )


@pytest.mark.parametrize(
    "body, message",
    [
        ("[session]\nretries = 1\n", "session.retries"),
        ("[session]\nretry_offset = 0\n", "session.retry_offset"),
        ("[session]\nretry_offset = \"4\"\n", "must be an integer"),
        ("[session]\ndefault_count = -1\n", "session.default_count"),
        ("[session]\nshuffle_options = \"yes\"\n", "must be a boolean"),
        ("[logging]\nlevel = \"LOUD\"\n", "logging.level"),
        ("[paths]\nquestions_dir = 5\n", "paths.questions_dir"),
        ("[session\n", "parse"),
    ],
)
def test_invalid_config_values(tmp_path, body, message):
    home = tmp_path / "home"
    _write_config(home, body)

    with pytest.raises(qcfg.QuizzerConfigError, match=message):
        qcfg.load_config(workspace_path=home, env={})


def test_env_retry_offset_must_be_integer(tmp_path):
    with pytest.raises(qcfg.QuizzerConfigError, match="RETRY_OFFSET"):
        qcfg.load_config(
            workspace_path=tmp_path / "home",
            env={"STUDY_QUIZ_RETRY_OFFSET": "often"},
        )


def test_blank_env_values_are_ignored(tmp_path):
    home = tmp_path / "home"

    config = qcfg.load_config(
        workspace_path=home,
        env={"STUDY_QUIZ_QUESTIONS_DIR": "  ", "STUDY_QUIZ_LOG_LEVEL": ""},
    ).config

    assert config.questions_dir == (home / "question_sets").resolve()
    assert config.log_level == "INFO"


def test_workspace_from_env(tmp_path):
    home = tmp_path / "env-home"

    result = qcfg.load_config(env={"STUDY_QUIZ_DATA_HOME": str(home)})

    assert result.layout.home == home.resolve()
    assert result.layout.path_for("logs").is_dir()


def test_default_table_is_fresh():
    first = qcfg.default_table()
    first["session"]["retry_offset"] = 99

    assert qcfg.default_table()["session"]["retry_offset"] == 4


def test_template_matches_defaults():
    table = qcfg.default_table()

    core_config.merge_defaults(table, tomllib.loads(qcfg.template_text()))

    assert table == {
        "paths": {"questions_dir": ""},
        "session": {
            "default_count": 0,
            "retry_offset": 4,
            "shuffle_options": True,
        },
        "logging": {"level": "INFO", "verbose": False},
    }


def test_write_template_refuses_overwrite(tmp_path):
    target = tmp_path / "nested" / qcfg.CONFIG_FILENAME

    assert qcfg.write_template(target) == target
    assert "[session]" in target.read_text(encoding="utf-8")
    with pytest.raises(qcfg.QuizzerConfigError, match="already exists"):
        qcfg.write_template(target)

    target.write_text("# edited\n", encoding="utf-8")
    qcfg.write_template(target, overwrite=True)
    assert "[session]" in target.read_text(encoding="utf-8")


def test_written_template_loads_cleanly(tmp_path):
    home = tmp_path / "home"
    qcfg.write_template(home / "config" / qcfg.CONFIG_FILENAME)

    result = qcfg.load_config(workspace_path=home, env={})

    assert result.config_path is not None
    assert result.config.questions_dir == (home / "question_sets").resolve()


def test_relative_cli_and_env_dirs_use_cwd(tmp_path, monkeypatch):
    home = tmp_path / "home"
    _write_config(home, "[paths]\nquestions_dir = \"from-file\"\n")
    monkeypatch.chdir(tmp_path)

    from_file = qcfg.load_config(workspace_path=home, env={}).config
    from_env = qcfg.load_config(
        workspace_path=home, env={"STUDY_QUIZ_QUESTIONS_DIR": "env-sets"}
    ).config
    from_cli = qcfg.load_config(
        workspace_path=home,
        env={},
        overrides=qcfg.ConfigOverrides(questions_dir=Path("cli-sets")),
    ).config

    assert from_file.questions_dir == (home / "from-file").resolve()
    assert from_env.questions_dir == (tmp_path / "env-sets").resolve()
    assert from_cli.questions_dir == (tmp_path / "cli-sets").resolve()
