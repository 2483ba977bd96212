import logging

from blocktap.logging_config import QUIET_LIBRARIES, build_logging_config, setup_logging


def test_console_only_by_default():
    config = build_logging_config()
    assert list(config["handlers"]) == ["stderr"]
    assert config["handlers"]["stderr"]["stream"] == "ext://sys.stderr"
    assert config["loggers"]["blocktap"]["level"] == "INFO"


def test_log_file_adds_a_handler_everywhere(tmp_path):
    path = str(tmp_path / "blocktap.log")
    config = build_logging_config("debug", path)

    assert config["handlers"]["logfile"]["filename"] == path
    assert config["loggers"]["blocktap"]["level"] == "DEBUG"
    for logger in config["loggers"].values():
        assert logger["handlers"] == ["stderr", "logfile"]
    assert config["root"]["handlers"] == ["stderr", "logfile"]


def test_libraries_held_at_warning():
    loggers = build_logging_config("DEBUG")["loggers"]
    assert {lib: loggers[lib]["level"] for lib in QUIET_LIBRARIES} == dict.fromkeys(QUIET_LIBRARIES, "WARNING")


def test_setup_reads_the_environment(monkeypatch, tmp_path):
    path = tmp_path / "env.log"
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("LOG_FILE", str(path))

    config = setup_logging()

    assert config["loggers"]["blocktap"]["level"] == "WARNING"
    logger = logging.getLogger("blocktap.test")
    logger.warning("written to file")
    for handler in logging.getLogger("blocktap").handlers:
        handler.flush()
    assert "written to file" in path.read_text()
