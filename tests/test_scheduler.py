"""Tests for scheduler.py"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.scheduler import EffectScheduler


class TestOneShotTasks:
    """Tests for call_later."""

    def test_runs_when_due(self):
        """Test a task runs once its due time is reached, not before."""
        scheduler = EffectScheduler()
        fired = []
        scheduler.call_later(0, 100, fired.append, owner="a")

        assert scheduler.advance(99) == 0
        assert fired == []
        assert scheduler.advance(100) == 1
        assert fired == [100]
        assert scheduler.pending() == 0

    def test_due_order(self):
        """Test tasks run in due order, ties by scheduling order."""
        scheduler = EffectScheduler()
        order = []
        scheduler.call_later(0, 50, lambda t: order.append("late"), owner="a")
        scheduler.call_later(0, 10, lambda t: order.append("early"), owner="a")
        scheduler.call_later(0, 50, lambda t: order.append("late-2"), owner="a")

        scheduler.advance(1000)
        assert order == ["early", "late", "late-2"]

    def test_negative_delay_runs_immediately(self):
        """Test a negative delay is treated as zero."""
        scheduler = EffectScheduler()
        fired = []
        scheduler.call_later(10, -5, fired.append, owner="a")
        scheduler.advance(10)
        assert fired == [10]


class TestRepeatingTasks:
    """Tests for call_every."""

    def test_catches_up_missed_intervals(self):
        """Test a repeating task runs once per elapsed interval."""
        scheduler = EffectScheduler()
        fired = []
        scheduler.call_every(0, 100, fired.append, owner="a")

        scheduler.advance(350)
        assert fired == [100, 200, 300]
        assert scheduler.pending() == 1

    def test_invalid_interval(self):
        """Test a non-positive interval is rejected."""
        scheduler = EffectScheduler()
        with pytest.raises(ValueError):
            scheduler.call_every(0, 0, lambda t: None, owner="a")

    def test_cancel_from_own_callback(self):
        """Test a repeating task can stop itself."""
        scheduler = EffectScheduler()
        fired = []
        task = None

        def callback(due):
            fired.append(due)
            if len(fired) == 2:
                scheduler.cancel(task)

        task = scheduler.call_every(0, 10, callback, owner="a")
        scheduler.advance(100)
        assert fired == [10, 20]
        assert task.cancelled


class TestCancellation:
    """Tests for owner-based cancellation."""

    def test_cancel_owner(self):
        """Test cancelling one owner leaves the other owner's tasks."""
        scheduler = EffectScheduler()
        fired = []
        owner_a, owner_b = object(), object()
        scheduler.call_later(0, 10, lambda t: fired.append("a"), owner=owner_a)
        scheduler.call_every(0, 10, lambda t: fired.append("a2"), owner=owner_a)
        scheduler.call_later(0, 10, lambda t: fired.append("b"), owner=owner_b)

        assert scheduler.cancel_owner(owner_a) == 2
        assert scheduler.pending(owner_a) == 0
        assert scheduler.pending(owner_b) == 1

        scheduler.advance(10)
        assert fired == ["b"]

    def test_cancel_all(self):
        """Test cancel_all drops every pending task."""
        scheduler = EffectScheduler()
        fired = []
        scheduler.call_later(0, 10, fired.append, owner="a")
        scheduler.call_every(0, 10, fired.append, owner="b")

        assert scheduler.cancel_all() == 2
        scheduler.advance(1000)
        assert fired == []

    def test_callback_cancels_later_task(self):
        """Test a task cancelled by an earlier callback in the same pass is skipped."""
        scheduler = EffectScheduler()
        fired = []
        victim = scheduler.call_later(0, 20, lambda t: fired.append("victim"), owner="a")
        scheduler.call_later(0, 10, lambda t: scheduler.cancel(victim), owner="a")

        scheduler.advance(50)
        assert fired == []

    def test_cancel_none(self):
        """Test cancelling None is a no-op."""
        scheduler = EffectScheduler()
        scheduler.cancel(None)
        assert scheduler.pending() == 0
