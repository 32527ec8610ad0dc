import json

import pytest

from mantelagraph import walker as walker_mod

from builders import ext, mantela, provider

S = "https://s.example/mantela.json"
P = "https://p.example/mantela.json"


@pytest.fixture
def served(fake_network, monkeypatch):
    net = fake_network({
        S: mantela("X1", "Main", extensions=[ext("Lobby", "100")],
                   providers=[provider("Y1", "Up", "9", P)]),
        P: 500,
    })
    monkeypatch.setattr(walker_mod, "DescriptorFetcher",
                        lambda **kwargs: net.fetcher())
    return net


def test_cli_json_output(served, capsys):
    walker_mod.main([S, "--json"])
    data = json.loads(capsys.readouterr().out)

    assert [n["id"] for n in data["nodes"]][0] == "X1"
    assert data["nodes"][2] == {"id": "Y1", "names": ["Up"], "type": "PBX"}
    assert data["edges"][1] == {"from": "X1", "to": "Y1", "label": "9"}
    assert served.requested == [S, P]


def test_cli_vis_output(served, capsys):
    walker_mod.main([S, "--vis"])
    data = json.loads(capsys.readouterr().out)
    assert data["nodes"][1]["color"] == "orange"
    assert all(e["arrows"] == "to" for e in data["edges"])


def test_cli_tree_output(served, capsys):
    walker_mod.main([S])
    out = capsys.readouterr().out
    assert "Main" in out
    assert "Lobby" in out


def test_cli_reports_failed_fetch_on_stderr(served, capsys):
    walker_mod.main([S, "--json"])
    assert P in capsys.readouterr().err


def test_cli_max_nest_zero(served, capsys):
    walker_mod.main([S, "--json", "--max-nest", "0"])
    assert served.requested == [S]


def test_cli_writes_diagnostics(served, tmp_path, capsys):
    out = tmp_path / "diag.json"
    walker_mod.main([S, "--json", "--diagnostics", str(out)])
    assert json.loads(out.read_text())["summary"]["failed_fetches"] == 1


def test_cli_verbose_prints_crawl_summary(served, capsys):
    walker_mod.main([S, "--json", "-v"])
    err = capsys.readouterr().err
    assert f"Mantela crawl: {S}" in err
    assert "Fetches: 2 | Failed: 1" in err


def test_cli_summary_only_when_verbose(served, capsys):
    walker_mod.main([S, "--json"])
    assert "Mantela crawl:" not in capsys.readouterr().err


@pytest.mark.parametrize("argv", [
    [S, "--max-nest", "-1"],
    [S, "--timeout", "0"],
    [S, "--json", "--vis"],
    [],
])
def test_cli_rejects_bad_arguments(argv):
    with pytest.raises(SystemExit) as exc:
        walker_mod.main(argv)
    assert exc.value.code == 2
