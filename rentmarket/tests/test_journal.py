from __future__ import annotations

import pytest
from hypothesis import given, settings, strategies as st

from rentmarket.state.journal import Journal
from rentmarket.state.store import HOLDS, VARS, MarketState


@pytest.fixture
def journal() -> Journal:
    st_ = MarketState()
    st_.table(HOLDS)[1] = 100
    return Journal(st_)


def test_commit_applies_to_base(journal):
    journal.begin()
    journal.put(HOLDS, 2, 200)
    assert journal.state.table(HOLDS).get(2) is None
    journal.commit()
    assert journal.state.table(HOLDS)[2] == 200
    assert journal.depth() == 1
    assert journal.pending_writes() == 0


def test_revert_discards(journal):
    journal.begin()
    journal.put(HOLDS, 1, 999)
    journal.delete(HOLDS, 1)
    journal.revert()
    assert journal.get(HOLDS, 1) == 100
    assert journal.state.table(HOLDS) == {1: 100}


def test_nested_inner_revert_keeps_outer(journal):
    outer = journal.begin()
    journal.put(HOLDS, 2, 2)
    journal.begin()
    journal.put(HOLDS, 3, 3)
    assert journal.get(HOLDS, 3) == 3
    journal.revert()
    assert journal.get(HOLDS, 3) is None
    journal.commit_to(outer)
    assert journal.state.table(HOLDS) == {1: 100, 2: 2}


def test_inner_commit_waits_for_outer(journal):
    outer = journal.begin()
    journal.begin()
    journal.put(HOLDS, 5, 5)
    journal.commit()
    # merged into the outer layer only
    assert 5 not in journal.state.table(HOLDS)
    journal.revert_to(outer)
    assert journal.get(HOLDS, 5) is None


def test_delete_hides_base_and_commit_removes(journal):
    journal.begin()
    assert journal.delete(HOLDS, 1) is True
    assert not journal.contains(HOLDS, 1)
    assert list(journal.items(HOLDS)) == []
    assert journal.delete(HOLDS, 1) is False
    journal.commit()
    assert journal.state.table(HOLDS) == {}


def test_items_merges_overlays(journal):
    journal.begin()
    journal.put(HOLDS, 2, 20)
    journal.begin()
    journal.put(HOLDS, 1, 10)
    assert dict(journal.items(HOLDS)) == {1: 10, 2: 20}
    assert journal.count(HOLDS) == 2
    assert journal.pending_tables() == [HOLDS]


def test_vars_helpers(journal):
    assert journal.get_var("missing", 7) == 7
    journal.begin()
    journal.set_var("next_listing_id", 3)
    journal.commit()
    assert journal.state.table(VARS)["next_listing_id"] == 3


def test_rejects_unknown_table_and_none(journal):
    with pytest.raises(KeyError):
        journal.put("nope", 1, 1)
    with pytest.raises(ValueError):
        journal.put(HOLDS, 1, None)
    with pytest.raises(ValueError):
        journal.revert_to(0)


@settings(max_examples=100, deadline=None)
@given(
    base=st.dictionaries(st.integers(0, 20), st.integers(1, 1_000), max_size=10),
    writes=st.lists(st.tuples(st.integers(0, 20), st.one_of(st.none(), st.integers(1, 1_000))), max_size=30),
    commit=st.booleans(),
)
def test_revert_restores_and_commit_is_last_wins(base, writes, commit):
    state = MarketState()
    state.table(HOLDS).update(base)
    j = Journal(state)
    marker = j.begin()
    expected = dict(base)
    for k, v in writes:
        if v is None:
            j.delete(HOLDS, k)
            expected.pop(k, None)
        else:
            j.put(HOLDS, k, v)
            expected[k] = v
    assert dict(j.items(HOLDS)) == expected
    if commit:
        j.commit_to(marker)
        assert state.table(HOLDS) == expected
    else:
        j.revert_to(marker)
        assert state.table(HOLDS) == base
