import json
import logging
import re

import pytest

from parentree_common import ConfigurationError, NotFoundError, ValidationError
from parentree_structures import (
    InvalidDatatypeError,
    InvalidOptionError,
    InvalidParentError,
    Node,
    NodeNotFoundError,
    Tree,
    TreeError,
    TreeOptions,
)


def numeric_data():
    # sorted by name, so children often come before their parents
    return [
        {"id": 5, "name": "Africa", "parent": 0},
        {"id": 21, "name": "Altona", "parent": 11},
        {"id": 3, "name": "America", "parent": 0},
        {"id": 4, "name": "Asia", "parent": 0},
        {"id": 6, "name": "Australia", "parent": 0},
        {"id": 15, "name": "Berlin", "parent": 7},
        {"id": 27, "name": "Eimsbüttel", "parent": 11},
        {"id": 1, "name": "Europe", "parent": 0},
        {"id": 7, "name": "Germany", "parent": 1},
        {"id": 11, "name": "Hamburg", "parent": 7},
        {"id": 20, "name": "Lisbon", "parent": 10},
        {"id": 12, "name": "Munich", "parent": 7},
        {"id": 10, "name": "Portugal", "parent": 1},
    ]


def string_data():
    return [
        {"id": "bicycle", "parent": "vehicle"},
        {"id": "building", "parent": ""},
        {"id": "car", "parent": "vehicle"},
        {"id": "library", "parent": "building"},
        {"id": "primary-school", "parent": "school"},
        {"id": "school", "parent": "building"},
        {"id": "vehicle", "parent": ""},
    ]


def ids(nodes):
    return [node.id for node in nodes]


def test_simple_tree():
    tree = Tree(numeric_data())
    assert ids(tree.get_root_nodes()) == [5, 3, 4, 6, 1]
    assert ids(tree.get_nodes()) == [5, 3, 4, 6, 1, 7, 15, 11, 21, 27, 12, 10, 20]
    assert tree.root.id == 0
    assert tree.root.parent is None
    assert tree.root.level == 0


def test_tree_with_string_ids():
    tree = Tree(string_data(), root_id="")
    assert ids(tree.get_root_nodes()) == ["building", "vehicle"]
    assert ids(tree.get_nodes()) == [
        "building",
        "library",
        "school",
        "primary-school",
        "vehicle",
        "bicycle",
        "car",
    ]


def test_the_tree_can_be_built_from_a_generator():
    data = json.loads(
        '[{"id":1,"parent":0},{"id":2,"parent":0},{"id":3,"parent":2},{"id":4,"parent":0}]'
    )
    tree = Tree(record for record in data)
    assert ids(tree.get_nodes()) == [1, 2, 3, 4]
    assert ids(tree.get_node_by_id(2).children) == [3]


def test_the_tree_can_be_built_with_custom_keys():
    data = [
        {"id_node": "car", "id_parent": "vehicle"},
        {"id_node": "vehicle", "id_parent": ""},
        {"id_node": "bicycle", "id_parent": "vehicle"},
    ]
    tree = Tree(data, root_id="", id_key="id_node", parent_key="id_parent")
    assert ids(tree.get_nodes()) == ["vehicle", "car", "bicycle"]
    assert tree.get_node_by_id("car").get("id_parent") == "vehicle"
    assert tree.get_node_by_id("car").parent_id == "vehicle"


def test_a_record_without_parent_field_has_parent_none():
    tree = Tree([{"id": 1}, {"id": 2, "parent": 1}], root_id=None)
    assert ids(tree.get_root_nodes()) == [1]
    assert tree.get_node_by_id(2).parent_id == 1


def test_the_root_id_can_be_none():
    tree = Tree([{"id": 1, "parent": None}, {"id": 2, "parent": 1}], root_id=None)
    assert tree.root.id is None
    assert tree.get_node_by_id(None) is tree.root
    assert ids(tree.get_nodes()) == [1, 2]
    assert str(tree) == "- 1\n  - 2"


def test_the_tree_can_be_built_from_options():
    options = {"ROOTID": "", "Id": "id_node", "PARENT": "id_parent"}
    tree = Tree.from_options(
        [{"id_node": "b", "id_parent": "a"}, {"id_node": "a", "id_parent": ""}], options
    )
    assert tree.root_id == ""
    assert tree.id_key == "id_node"
    assert tree.parent_key == "id_parent"
    assert ids(tree.get_nodes()) == ["a", "b"]


def test_from_options_accepts_a_tree_options_instance():
    calls = []
    options = TreeOptions(root_id=-1, build_warning_callback=lambda node, pid: calls.append(pid))
    tree = Tree.from_options([{"id": 1, "parent": -1}, {"id": 2, "parent": 42}], options)
    assert ids(tree.get_nodes()) == [1]
    assert calls == [42]
    assert tree.options.root_id == -1


def test_from_options_without_options_uses_the_defaults():
    tree = Tree.from_options([{"id": 1, "parent": 0}])
    assert tree.root_id == 0
    assert ids(tree) == [1]


def test_unknown_options_are_rejected():
    with pytest.raises(InvalidOptionError, match="Unknown option “depth”"):
        Tree.from_options([], {"depth": 3})


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"root_id": [1]}, "Option “rootId” must be scalar or null"),
        ({"root_id": {"a": 1}}, "Option “rootId” must be scalar or null"),
        ({"id_key": 5}, "Option “id” must be a string"),
        ({"id_key": ""}, "Option “id” must be a string"),
        ({"parent_key": None}, "Option “parent” must be a string"),
        ({"build_warning_callback": "warn"}, "Option “buildWarningCallback” must be callable"),
        ({"json_serializer": 5}, "Option “jsonSerializer” must be a serializer object or a callable"),
    ],
)
def test_invalid_options_are_rejected(kwargs, message):
    with pytest.raises(InvalidOptionError, match=message) as exc_info:
        Tree([], **kwargs)
    assert isinstance(exc_info.value, TypeError)
    assert isinstance(exc_info.value, ConfigurationError)
    assert isinstance(exc_info.value, TreeError)


@pytest.mark.parametrize("data", ["a", b"ab", 5, None, {"id": 1, "parent": 0}])
def test_data_must_be_an_iterable_of_records(data):
    with pytest.raises(InvalidDatatypeError, match="Data must be an iterable") as exc_info:
        Tree(data)
    assert isinstance(exc_info.value, TypeError)
    assert isinstance(exc_info.value, ValidationError)


def test_records_must_be_mappings():
    with pytest.raises(InvalidDatatypeError, match="Records must be mappings, got int"):
        Tree([1, 2])


def test_records_must_have_an_id_field():
    with pytest.raises(InvalidDatatypeError, match="Record has no “id” field"):
        Tree([{"name": "x", "parent": 0}])


def test_ids_must_be_scalar():
    with pytest.raises(InvalidDatatypeError, match="Field “id” must hold a scalar or null"):
        Tree([{"id": [1], "parent": 0}])
    with pytest.raises(InvalidDatatypeError, match="Field “parent” must hold a scalar or null"):
        Tree([{"id": 1, "parent": {"id": 0}}])


def test_an_invalid_parent_id_raises():
    data = [{"id": 1, "parent": 0}, {"id": 123, "parent": 456}]
    with pytest.raises(InvalidParentError, match="123 points to non-existent parent with ID 456") as exc_info:
        Tree(data)
    assert exc_info.value.context == {"node_id": 123, "parent_id": 456}


def test_a_parent_id_of_another_type_is_not_found():
    with pytest.raises(InvalidParentError, match=re.escape("points to non-existent parent with ID '1'")):
        Tree([{"id": 1, "parent": 0}, {"id": 2, "parent": "1"}])


def test_root_level_records_match_the_root_id_as_text():
    tree = Tree([{"id": 1, "parent": "0"}, {"id": 2, "parent": 0}, {"id": 3, "parent": 1}])
    assert ids(tree.get_root_nodes()) == [1, 2]
    assert ids(tree.get_nodes()) == [1, 3, 2]
    assert tree.get_node_by_id(1).parent is tree.root

    tree = Tree([{"id": "a", "parent": 5}, {"id": "b", "parent": "5"}], root_id="5")
    assert ids(tree.get_root_nodes()) == ["a", "b"]
    with pytest.raises(InvalidParentError, match="non-existent parent with ID 5.0"):
        Tree([{"id": "c", "parent": 5.0}], root_id="5")


def test_a_null_root_takes_empty_string_parents():
    tree = Tree([{"id": 1, "parent": ""}, {"id": 2, "parent": None}], root_id=None)
    assert ids(tree.get_root_nodes()) == [1, 2]


@pytest.mark.parametrize(
    "node_id, parent_id",
    [(678, 678), ("678", 678), (678, "678")],
)
def test_a_node_that_is_its_own_parent_raises(node_id, parent_id):
    with pytest.raises(InvalidParentError, match="678 references its own ID as parent"):
        Tree([{"id": node_id, "parent": parent_id}])


def test_a_string_id_below_a_numeric_root_is_accepted():
    tree = Tree([{"id": "foo", "parent": 0}])
    assert ids(tree.get_nodes()) == ["foo"]


def test_the_build_warning_callback_receives_orphans(caplog):
    calls = []

    def on_warning(node, parent_id):
        calls.append((node, parent_id))

    data = [{"id": 1, "parent": 0}, {"id": 2, "parent": ""}]
    with caplog.at_level(logging.WARNING, logger="parentree_structures.tree"):
        tree = Tree(data, build_warning_callback=on_warning)

    assert len(calls) == 1
    node, parent_id = calls[0]
    assert node.id == 2
    assert parent_id == ""
    assert ids(tree.get_nodes()) == [1]
    assert len(tree) == 1
    orphan = tree.get_node_by_id(2)
    assert orphan is node
    assert orphan.parent is None
    assert "Node with ID 2 points to non-existent parent" in caplog.text


def test_the_callback_does_not_hide_self_references():
    with pytest.raises(InvalidParentError, match="references its own ID"):
        Tree([{"id": 5, "parent": "5"}], build_warning_callback=lambda node, pid: None)


def test_a_node_can_be_retrieved_by_id():
    tree = Tree(numeric_data())
    node = tree.get_node_by_id(11)
    assert node.name == "Hamburg"
    assert ids(node.children) == [21, 27]
    assert tree.get_node_by_id(0) is tree.root


def test_an_unknown_id_raises():
    tree = Tree(numeric_data())
    with pytest.raises(NodeNotFoundError, match="Invalid node primary key 999") as exc_info:
        tree.get_node_by_id(999)
    assert isinstance(exc_info.value, LookupError)
    assert isinstance(exc_info.value, NotFoundError)
    assert exc_info.value.context == {"node_id": 999}


def test_ids_are_looked_up_strictly():
    tree = Tree(numeric_data())
    with pytest.raises(NodeNotFoundError):
        tree.get_node_by_id("11")
    with pytest.raises(NodeNotFoundError):
        tree.get_node_by_id(11.5)
    with pytest.raises(NodeNotFoundError):
        tree.get_node_by_id([11])


def test_duplicate_ids_keep_the_last_record():
    tree = Tree([{"id": 1, "name": "first", "parent": 0}, {"id": 1, "name": "second", "parent": 0}])
    assert tree.get_node_by_id(1).name == "second"
    assert ids(tree.get_nodes()) == [1]


def test_a_node_can_be_found_by_a_value_path():
    tree = Tree(numeric_data())
    node = tree.get_node_by_value_path("name", ["Europe", "Germany", "Hamburg"])
    assert node is tree.get_node_by_id(11)
    assert tree.get_node_by_value_path("NAME", ["Europe", "Portugal"]).id == 10


def test_a_value_path_without_match_returns_none():
    tree = Tree(numeric_data())
    assert tree.get_node_by_value_path("name", ["Europe", "Germany", "Frankfurt"]) is None
    assert tree.get_node_by_value_path("name", ["Germany"]) is None
    assert tree.get_node_by_value_path("name", ["europe"]) is None
    assert tree.get_node_by_value_path("name", []) is None
    assert tree.get_node_by_value_path("population", ["Europe"]) is None


def test_value_paths_compare_values_strictly():
    tree = Tree(numeric_data())
    assert tree.get_node_by_value_path("id", [1, 7]).name == "Germany"
    assert tree.get_node_by_value_path("id", ["1"]) is None
    assert tree.get_node_by_value_path("id", [1.0]) is None


def test_rebuilding_replaces_the_nodes():
    tree = Tree(numeric_data())
    tree.rebuild_with_data([{"id": 100, "parent": 0}, {"id": 101, "parent": 100}])
    assert ids(tree.get_nodes()) == [100, 101]
    with pytest.raises(NodeNotFoundError):
        tree.get_node_by_id(1)


def test_rebuilding_with_the_same_data_gives_the_same_tree():
    tree = Tree(numeric_data())
    before = tree.to_json()
    tree.rebuild_with_data(numeric_data())
    assert tree.to_json() == before


def test_a_failed_rebuild_keeps_the_previous_nodes():
    tree = Tree(numeric_data())
    with pytest.raises(InvalidParentError):
        tree.rebuild_with_data([{"id": 1, "parent": 0}, {"id": 2, "parent": 99}])
    assert ids(tree.get_root_nodes()) == [5, 3, 4, 6, 1]
    assert tree.get_node_by_id(11).name == "Hamburg"


def test_iterating_a_tree_yields_all_nodes():
    tree = Tree(numeric_data())
    assert len(tree) == 13
    assert [node.id for node in tree] == ids(tree.get_nodes())
    # every iteration starts over
    assert [node.id for node in tree] == ids(tree.get_nodes())
    iterator = iter(tree)
    assert next(iterator).id == 5
    assert next(iter(tree)).id == 5


def test_levels_and_siblings():
    tree = Tree(numeric_data())
    assert tree.get_node_by_id(5).level == 1
    assert tree.get_node_by_id(7).level == 2
    assert tree.get_node_by_id(27).level == 4
    assert ids(tree.get_node_by_id(7).get_siblings()) == [10]
    assert ids(tree.get_node_by_id(3).get_siblings()) == [5, 4, 6, 1]
    assert tree.get_node_by_id(11).next_sibling.id == 12
    assert tree.get_node_by_id(11).prev_sibling.id == 15


def test_ancestors_and_descendants_in_a_tree():
    tree = Tree(numeric_data())
    assert ids(tree.get_node_by_id(27).get_ancestors()) == [11, 7, 1]
    assert ids(tree.get_node_by_id(1).get_descendants()) == [7, 15, 11, 21, 27, 12, 10, 20]


def test_create_node_can_be_overridden():
    class NamedNode(Node):
        def __str__(self):
            return self.get("name")

    class NamedTree(Tree):
        def create_node(self, node_id, parent_id, properties):
            return NamedNode(node_id, parent_id, properties)

    tree = NamedTree([{"id": 1, "name": "Europe", "parent": 0}, {"id": 7, "name": "Germany", "parent": 1}])
    assert all(isinstance(node, NamedNode) for node in tree)
    assert str(tree) == "- Europe\n  - Germany"


def test_repr():
    tree = Tree(numeric_data())
    assert repr(tree) == "Tree(root_id=0, nodes=13)"


def test_the_error_hierarchy():
    assert issubclass(InvalidParentError, TreeError)
    assert issubclass(InvalidParentError, ValidationError)
    assert not issubclass(InvalidParentError, TypeError)
    with pytest.raises(TreeError, match=re.escape("Invalid node primary key 5")):
        Tree([]).get_node_by_id(5)
