import numpy as np

from id3chi import Attribute, build, render
from id3chi.tree import Branch, BuildState, DecisionTree, InternalNode, Leaf


def _hand_built_tree():
    outlook = Attribute("outlook", ["sunny", "rainy"], 0)
    windy = Attribute("windy", ["yes", "no"], 1)
    play = Attribute("play", ["yes", "no"], 2)
    no = Leaf([0.0, 1.0], 1, play, BuildState.ZERO_GAIN)
    yes = Leaf([1.0, 0.0], 0, play, BuildState.ZERO_GAIN)
    empty = Leaf([0.5, 0.5], None, play, BuildState.EMPTY)
    inner = InternalNode(windy, [Branch("yes", 0.5, no), Branch("no", 0.5, yes)])
    root = InternalNode(outlook, [Branch("sunny", 1.0, inner), Branch("rainy", 0.0, empty)])
    return DecisionTree(root, [outlook, windy, play], 2, 0.99)


def test_render_separable(separable):
    text = render(build(separable))
    assert text == "ID3Chi\n\nWeather = Sunny: Yes\nWeather = Rainy: No"


def test_render_nested_and_undefined_leaf():
    text = render(_hand_built_tree())
    assert text == ("ID3Chi\n\n"
                    "outlook = sunny\n"
                    "|  windy = yes: no\n"
                    "|  windy = no: yes\n"
                    "outlook = rainy: <undefined>")


def test_render_single_leaf(balanced_noise):
    assert render(build(balanced_noise, 0.5)) == "ID3Chi\n\n: Yes"
    assert str(build(balanced_noise, 0.5)) == "ID3Chi\n\n: Yes"


def test_export_rules():
    rules = _hand_built_tree().export_rules()
    assert rules == [
        "outlook = sunny AND windy = yes => no",
        "outlook = sunny AND windy = no => yes",
        "outlook = rainy => <undefined>",
    ]


def test_hand_built_tree_stats():
    tree = _hand_built_tree()
    assert tree.num_leaves == 3
    assert tree.depth == 2
    assert [n.is_leaf for n in tree.iter_nodes()] == [False, False, True, True, True]
    assert np.allclose(tree.root.child(1).distribution, [0.5, 0.5])
