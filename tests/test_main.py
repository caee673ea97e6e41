"""
Tests for the command line entry point
"""

import json
import pytest

import main


@pytest.fixture(autouse=True)
def no_log_files(monkeypatch):
    """Keep CLI tests from writing log files"""
    monkeypatch.setattr(main, "setup_logging", lambda *args, **kwargs: None)


class TestPointsCommand:
    """Tests for `main.py points`"""

    def test_prints_breakdown(self, capsys):
        assert main.main(["points", "--coefficient", "5", "--rank", "2", "--wins", "3"]) == 0

        out = capsys.readouterr().out
        assert "placement: 34" in out
        assert "win bonus: 15" in out
        assert "total:     49" in out

    def test_medal_not_counted(self, capsys):
        main.main(["points", "--coefficient", "2", "--rank", "1", "--wins", "1"])
        assert "(medal not counted)" in capsys.readouterr().out

    def test_invalid_input(self):
        assert main.main(["points", "--coefficient", "8", "--rank", "1"]) == 2


class TestSnapshotCommand:
    """Tests for offline `main.py snapshot --data`"""

    def test_offline_snapshot(self, sample_data, tmp_path):
        athletes, events, results = sample_data
        data_file = tmp_path / "export.json"
        data_file.write_text(json.dumps({"athletes": athletes, "events": events, "results": results}))
        output = tmp_path / "out.json"

        code = main.main([
            "snapshot", "--date", "2026-06-30", "--data", str(data_file), "--output", str(output)
        ])

        assert code == 0
        rankings = json.loads(output.read_text(encoding="utf-8"))["rankings"]
        assert [r["age_category"] for r in rankings] == ["Cadet", "Junior", "Senior"]

    def test_requires_mode(self):
        with pytest.raises(SystemExit):
            main.main([])
