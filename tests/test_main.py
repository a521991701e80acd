"""Tests for the command-line demo."""

import functools
import sys
from datetime import datetime

import main
from scheduling_engine.engine import SchedulingEngine
from tests.conftest import fixed_clock


def run_demo(monkeypatch, capsys, *argv):
    monkeypatch.setattr(sys, "argv", ["main.py", *argv])
    monkeypatch.setattr(main, "SchedulingEngine", functools.partial(SchedulingEngine, clock=fixed_clock))
    main.main()
    return capsys.readouterr().out


def listed_slot_starts(output):
    return [
        datetime.fromisoformat(line.split()[0])
        for line in output.splitlines()
        if line.startswith("  2026-")
    ]


class TestDemo:
    def test_availability_listed_from_best_slot(self, monkeypatch, capsys):
        output = run_demo(monkeypatch, capsys, "--service", "detail", "--days", "1")
        starts = listed_slot_starts(output)

        assert starts
        assert starts[0].isoformat() == "2026-03-16T09:00:00-04:00"
        assert all(start.minute == 0 and start.second == 0 for start in starts)
        assert "from 2026-03-16T09:00:00-04:00" in output

    def test_books_best_slot(self, monkeypatch, capsys):
        output = run_demo(monkeypatch, capsys, "--service", "repair")
        assert "Booked BK-" in output
        assert "Bravo Team" in output
