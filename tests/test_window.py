"""Tests for the bounded block window."""

import pytest
from feewindow.models import Block, Transaction
from feewindow.window import BlockWindow


def _block(height, fee=5, cu=10):
    return Block(height=height, transactions=(Transaction(fee, cu),))


def test_window_rejects_zero_capacity():
    """Test that a window needs room for at least one block."""
    with pytest.raises(ValueError):
        BlockWindow(0)


def test_window_keeps_arrival_order():
    """Test that contents reflect push order, not height order."""
    window = BlockWindow(3)
    window.push(_block(7))
    window.push(_block(5))
    window.push(_block(6))

    assert [b.height for b in window.contents()] == [7, 5, 6]


def test_window_evicts_oldest_past_capacity():
    """Test that capacity+1 pushes drop exactly the earliest block."""
    window = BlockWindow(2)
    assert window.push(_block(1)) is None
    assert window.push(_block(2)) is None

    evicted = window.push(_block(3))

    assert evicted.height == 1
    assert len(window) == 2
    assert [b.height for b in window.contents()] == [2, 3]


def test_window_never_exceeds_capacity():
    """Test length bound over many pushes."""
    window = BlockWindow(4)
    for height in range(50):
        window.push(_block(height))
        assert len(window) <= 4
    assert [b.height for b in window.contents()] == [46, 47, 48, 49]


def test_window_contents_is_a_copy():
    """Test that mutating the returned list leaves the window untouched."""
    window = BlockWindow(2)
    window.push(_block(1))

    view = window.contents()
    view.clear()

    assert len(window) == 1
