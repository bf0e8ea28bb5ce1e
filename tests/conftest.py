# tests/conftest.py
"""
Shared fixtures and rule documents for the Butane test-suite.
"""

import copy
import logging

import pytest
import yaml

from butane.builtins import FunctionRegistry, one_of
from butane.options import FunctionDef, Options, RefDef


# ═══════════════════════════════════════════════════════════════════════════
# RULE DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════

MINIMAL_YAML = """\
rules:
  .read: true
  .write: false
"""

RULES_YAML = """\
.functions:
  isAuthed(): auth !== null
  hasGame(game): root.games.hasChild(game)
  hasPlayer(game): root.games[game].players.hasChild(auth.uid)
  isPlayer(player): player === auth.uid
  createOnly(): next.exists() && !prev.exists()
  isString(snapshot, path): snapshot[path].isString()

rules:
  cards:
    .read: isAuthed()
  games:
    $game:
      settings:
        timestamp:
          .read: true
          .write: next === 12345
        started:
          .write: oneOf(true, false)
      meta:
        .write: oneOf(['foo', 'bar'], 'next.title')
      cards:
        .read: hasPlayer($game)
      names:
        $name:
          .write: (!hasPlayer($game) || isPlayer(^$game.settings.creator)) && createOnly()
      players:
        $player:
          .write: >-
            hasGame($game) && ^$game['settings/started'] === false &&
            $player == auth.uid && (!prev.exists() || next === true) &&
            newData.exists()
          .validate: isString(next, 'name')
          name:
            .write: ^$game.names[next] === $player
            .validate: next.isString()
          cards:
            .write: $player === auth.uid
"""

RULES_JSON = {
    "rules": {
        "cards": {
            ".read": "auth !== null",
        },
        "games": {
            "$game": {
                "settings": {
                    "timestamp": {
                        ".read": True,
                        ".write": "newData.val() === 12345",
                    },
                    "started": {
                        ".write": "newData.val() === true || newData.val() === false",
                    },
                },
                "meta": {
                    ".write": (
                        "newData.child('title').val() === 'foo' || "
                        "newData.child('title').val() === 'bar'"
                    ),
                },
                "cards": {
                    ".read": "root.child('games').child($game).child('players').hasChild(auth.uid)",
                },
                "names": {
                    "$name": {
                        ".write": (
                            "(!root.child('games').child($game).child('players').hasChild(auth.uid) || "
                            "data.parent().parent().child('settings').child('creator').val() === auth.uid) && "
                            "(newData.exists() && !data.exists())"
                        ),
                    },
                },
                "players": {
                    "$player": {
                        ".write": (
                            "root.child('games').hasChild($game) && "
                            "data.parent().parent().child('settings/started').val() === false && "
                            "$player == auth.uid && "
                            "(!data.exists() || newData.val() === true) && "
                            "newData.exists()"
                        ),
                        ".validate": "newData.child('name').isString()",
                        "name": {
                            ".write": (
                                "data.parent().parent().parent().child('names')"
                                ".child(newData.val()).val() === $player"
                            ),
                            ".validate": "newData.isString()",
                        },
                        "cards": {
                            ".write": "$player === auth.uid",
                        },
                    },
                },
            },
        },
    },
}


# ═══════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def rules_doc():
    """A fresh decoded copy of RULES_YAML (parse() mutates its input)."""
    return yaml.safe_load(RULES_YAML)


@pytest.fixture
def expected_rules():
    return copy.deepcopy(RULES_JSON)


@pytest.fixture
def registry():
    """An isolated registry holding only the built-in functions."""
    return FunctionRegistry({"oneOf": one_of})


@pytest.fixture
def chat_options():
    """Options as seen one level below a ``$chat`` wildcard."""
    return Options(
        functions={
            "isUser": FunctionDef("isUser", ("user",), "user === auth.uid"),
        },
        refs={"chat": RefDef("next", 0)},
    )


@pytest.fixture
def debug_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="butane")
    return caplog
