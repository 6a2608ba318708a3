import os

from decentranet import config as cfgmod


def test_defaults_without_yaml(tmp_path, monkeypatch):
    for env in ("DECENTRANET_DATA_DIR", "HUBBLE_HTTP_URL", "HUBBLE_TIMEOUT_SEC", "USE_NEYNAR_API"):
        monkeypatch.delenv(env, raising=False)

    cfg = cfgmod.load_config(str(tmp_path))

    assert cfgmod.get_data_dir(cfg) == os.path.join(str(tmp_path), "data")
    assert cfgmod.get_hubble_url(cfg) == "http://localhost:2281"
    assert cfgmod.get_hubble_timeout(cfg) == 5.0
    assert cfgmod.neynar_enabled(cfg) is False
    assert cfgmod.get_thread_depth(cfg) is None
    assert [c["id"] for c in cfgmod.get_categories(cfg)][0] == "general"


def test_load_config_does_not_mutate_defaults(tmp_path):
    cfg = cfgmod.load_config(str(tmp_path))
    cfg["hubble"]["http_url"] = "http://elsewhere"
    assert cfgmod._DEFAULT["hubble"]["http_url"] == "http://localhost:2281"


def test_yaml_overrides_are_deep_merged(tmp_path, monkeypatch):
    monkeypatch.delenv("HUBBLE_HTTP_URL", raising=False)
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text(
        "hubble:\n  http_url: http://hub.example:2281/\nforum:\n  thread_depth: 2\nrewards:\n  review: 30\n",
        encoding="utf-8",
    )

    cfg = cfgmod.load_config(str(tmp_path))

    assert cfgmod.get_hubble_url(cfg) == "http://hub.example:2281"
    assert cfgmod.get_hubble_timeout(cfg) == 5.0
    assert cfgmod.get_thread_depth(cfg) == 2
    assert cfgmod.get_rewards(cfg)["review"] == 30
    assert cfgmod.get_rewards(cfg)["upvote"] == 2


def test_env_overrides_win(tmp_path, monkeypatch):
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text("hubble:\n  timeout_sec: 9\n", encoding="utf-8")
    monkeypatch.setenv("HUBBLE_TIMEOUT_SEC", "1.5")
    monkeypatch.setenv("USE_NEYNAR_API", "true")
    monkeypatch.setenv("DECENTRANET_DATA_DIR", str(tmp_path / "elsewhere"))

    cfg = cfgmod.load_config(str(tmp_path))

    assert cfgmod.get_hubble_timeout(cfg) == 1.5
    assert cfgmod.neynar_enabled(cfg) is True
    assert cfgmod.get_data_dir(cfg) == str(tmp_path / "elsewhere")


def test_broken_yaml_falls_back_to_defaults(tmp_path, caplog):
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text("hubble: [unclosed\n", encoding="utf-8")
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_bind_port(cfg) == 3001
    assert "ignoring unreadable" in caplog.text
