import json

import numpy as np
import pytest

from phasespace.cli import main
from phasespace.config import AnalysisConfig, load_config, save_config
from phasespace.data import load_prices
from phasespace.errors import ConfigurationError, InputError
from phasespace.pipeline import PhaseSpaceAnalysis
from phasespace.recurrence import RecurrenceMatrix


def test_fixed_pipeline(price_frame):
    cfg = AnalysisConfig(sample_size=200, tau=5, dimension=3)
    out = PhaseSpaceAnalysis(cfg).run(price_frame)

    emb = out["embedding"]
    assert len(emb) == 201 - 2 * 5
    assert out["delays"] == [0, 5, 10]
    assert isinstance(out["recurrence"], RecurrenceMatrix)
    assert out["recurrence"].shape == (len(emb), len(emb))


def test_fixed_pipeline_uses_open_deltas(price_frame):
    analysis = PhaseSpaceAnalysis(AnalysisConfig(sample_size=50, tau=1, dimension=2))
    deltas = analysis.prepare(price_frame)
    np.testing.assert_allclose(deltas, np.diff(price_frame["open"].to_numpy()))
    emb = analysis.fixed_embedding(deltas)
    offset = len(deltas) // 4
    np.testing.assert_allclose(emb[0], deltas[offset : offset + 2])


def test_automatic_pipeline(price_frame):
    cfg = AnalysisConfig(tmax=10, theiler=2, seed=0)
    out = PhaseSpaceAnalysis(cfg).run(price_frame, automatic=True)
    assert out["automatic"] is True
    assert out["delays"][0] == 0
    assert out["theiler"] == 2
    assert len(out["l_statistics"]) == out["embedding"].dimension


def test_automatic_pipeline_is_reproducible_with_seed(price_frame):
    cfg = AnalysisConfig(tmax=8, theiler=2, seed=42)
    a, _ = PhaseSpaceAnalysis(cfg).automatic_embedding(price_frame["close"].diff().to_numpy())
    b, _ = PhaseSpaceAnalysis(cfg).automatic_embedding(price_frame["close"].diff().to_numpy())
    assert a.delays == b.delays
    np.testing.assert_allclose(a.embedding.points, b.embedding.points)


def test_unknown_column(price_frame):
    with pytest.raises(InputError):
        PhaseSpaceAnalysis(AnalysisConfig(column="deltaX")).prepare(price_frame)


def test_config_roundtrip(tmp_path):
    cfg = AnalysisConfig(tau=7, tmax=50, seed=3)
    path = save_config(cfg, str(tmp_path / "cfg" / "analysis.json"))
    assert load_config(path) == cfg


def test_config_rejects_unknown_keys(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"tau": 3, "bogus": 1}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


@pytest.mark.parametrize(
    "kwargs",
    [{"tau": 0}, {"dimension": 1}, {"tmax": -1}, {"epsilon": 0.0}, {"fixed_window_offset": 1.5}],
)
def test_config_validation(kwargs):
    with pytest.raises(ConfigurationError):
        AnalysisConfig(**kwargs).validate()


def test_load_prices_normalizes_columns(tmp_path, price_frame):
    path = tmp_path / "prices.csv"
    price_frame.rename(columns={"open": "Open", "close": "Close"}).to_csv(path, index=False)
    frame = load_prices(str(path))
    assert {"open", "close"} <= set(frame.columns)


def test_load_prices_requires_columns(tmp_path):
    path = tmp_path / "prices.csv"
    path.write_text("a,b\n1,2\n", encoding="utf-8")
    with pytest.raises(InputError):
        load_prices(str(path))


def test_cli_writes_figures(tmp_path, price_frame):
    csv = tmp_path / "prices.csv"
    price_frame.to_csv(csv, index=False)
    out_dir = tmp_path / "figs"

    rc = main(["--csv", str(csv), "--sample-size", "120", "--tau", "3", "--save-dir", str(out_dir)])
    assert rc == 0
    assert (out_dir / "trajectory.png").exists()
    assert (out_dir / "recurrence.png").exists()


def test_cli_reports_errors(tmp_path, price_frame, capsys):
    csv = tmp_path / "prices.csv"
    price_frame.to_csv(csv, index=False)
    rc = main(["--csv", str(csv), "--sample-size", "5000"])
    assert rc == 1
    assert "error" in capsys.readouterr().out


def test_cli_reports_missing_file(tmp_path, capsys):
    rc = main(["--csv", str(tmp_path / "missing.csv")])
    assert rc == 1
    assert "error" in capsys.readouterr().out


def test_download_failure_is_input_error(monkeypatch):
    import phasespace.data as data_mod

    def boom(*args, **kwargs):
        raise ConnectionError("offline")

    monkeypatch.setattr(data_mod.yf, "download", boom)
    with pytest.raises(InputError):
        data_mod.download_prices("SPY", "2020-01-01", "2020-02-01", max_retries=2, pause=0)


def test_automatic_diagnostics_go_to_the_log_only(price_frame, capsys, caplog):
    import logging

    cfg = AnalysisConfig(tmax=6, theiler=2, seed=1)
    with caplog.at_level(logging.INFO, logger="phasespace"):
        PhaseSpaceAnalysis(cfg).run(price_frame, automatic=True)
    out = capsys.readouterr().out
    assert "Optimal time delays" not in out
    assert "Optimal time delays" in caplog.text
