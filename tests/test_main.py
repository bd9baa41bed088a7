import json

from typer.testing import CliRunner

from linkcrawl.main import app

runner = CliRunner()


def test_crawl_go_tour():
    result = runner.invoke(app, ["--depth", "2"])

    assert result.exit_code == 0, result.output
    assert "=== Crawler Config (STATIC) ===" in result.output
    assert "Visited URL: http://golang.org/" in result.output
    assert "Visited URL: http://golang.org/pkg/" in result.output
    assert "=== Done ===" in result.output
    assert "Visited: 2 keys" in result.output


def test_depth_zero_visits_nothing():
    result = runner.invoke(app, ["--depth", "0"])

    assert result.exit_code == 0, result.output
    assert "Visited URL:" not in result.output
    assert "Cache: 0 entries" in result.output


def test_dataset_file(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(
        json.dumps({
            "a": {"body": "A", "links": ["b", "c"]},
            "b": {"body": "B", "links": ["a"]},
            "c": {"body": "C", "links": []},
        }),
        encoding="utf-8",
    )

    result = runner.invoke(
        app, ["a", "--depth", "2", "--dataset", str(path), "--per-key-locks", "--delay-ms", "1"]
    )

    assert result.exit_code == 0, result.output
    for key in ("a", "b", "c"):
        assert f"Visited URL: {key}\n" in result.output
    assert "Cache: 3 entries" in result.output


def test_dedup_traversal_with_bloom():
    result = runner.invoke(app, ["--depth", "4", "--dedup-traversal", "--bloom"])

    assert result.exit_code == 0, result.output
    assert result.output.count("Visited URL: http://golang.org/\n") == 1


def test_negative_depth_is_usage_error():
    result = runner.invoke(app, ["--depth", "-1"])
    assert result.exit_code == 2


def test_missing_dataset_is_usage_error(tmp_path):
    result = runner.invoke(app, ["--dataset", str(tmp_path / "nope.json")])
    assert result.exit_code == 2


def test_metrics_port_can_be_used_twice_in_one_process(monkeypatch):
    started = []
    monkeypatch.setattr(
        "linkcrawl.main.start_metrics_server",
        lambda port, registry: started.append((port, registry)),
    )

    for _ in range(2):
        result = runner.invoke(app, ["--depth", "2", "--metrics-port", "9105"])
        assert result.exit_code == 0, result.output

    assert [port for port, _ in started] == [9105, 9105]
    first, second = (registry for _, registry in started)
    assert first is not second
    assert first.get_sample_value(
        "linkcrawl_keys_emitted_total", {"mode": "static", "lock_mode": "global"}
    ) == 2
