"""
Smoke test: the tutorial runs end to end without pausing.
"""

import demo


def test_demo_runs_in_quick_mode(monkeypatch, capsys):
    monkeypatch.setattr(demo, "QUICK_MODE", True)
    demo.main()
    out = capsys.readouterr().out
    assert "STEP 8: Audit" in out
    assert "MISMATCH" not in out
    assert "✗" not in out.split("STEP 8")[1]
