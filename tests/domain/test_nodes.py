"""Tests for the node variants."""

import dataclasses

import pytest

from goalgraph.domain.nodes import (
    NODE_CLASSES,
    Department,
    Frame,
    Goal,
    Tag,
    User,
    bare_node,
)
from goalgraph.domain.types import NodeKind


class TestNodeVariants:
    def test_every_kind_has_a_class(self) -> None:
        assert set(NODE_CLASSES) == set(NodeKind)
        for kind, cls in NODE_CLASSES.items():
            assert cls.kind is kind

    def test_new_nodes_have_no_uid(self) -> None:
        assert Department(xid="4").uid is None
        assert Goal(xid="1004").uid is None

    def test_frozen(self) -> None:
        user = User(xid="206")
        with pytest.raises(dataclasses.FrozenInstanceError):
            user.xid = "207"  # type: ignore[misc]

    def test_org_nodes_have_no_attributes(self) -> None:
        assert User(xid="206").attributes() == {}

    def test_goal_attributes(self) -> None:
        goal = Goal(xid="1004", name="Ship", state=2)
        assert goal.attributes() == {"name": "Ship", "state": 2, "created_at": None}

    def test_tag_and_frame_attributes(self) -> None:
        assert Tag(xid="q3", name="Q3").attributes() == {"name": "Q3", "created_at": None}
        assert Frame(xid="F-1", name="Kickoff").attributes() == {"name": "Kickoff"}


class TestHelpers:
    def test_bare_node(self) -> None:
        node = bare_node(NodeKind.DUTY, "105")
        assert node.kind is NodeKind.DUTY
        assert node.xid == "105"
        assert node.uid is None
