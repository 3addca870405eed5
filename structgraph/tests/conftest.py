import pytest
import copy
from pathlib import Path
from typing import Dict, Any, Tuple
import sys

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from structgraph.session import GraphSession


SAMPLE_RECORDS: Dict[str, Any] = {
    "scenes": [
        {
            "sceneName": "Main",
            "scenePath": "Assets/Scenes/Main.unity",
            "gameObjects": [
                {
                    "name": "Player",
                    "instanceId": "100",
                    "components": [
                        {
                            "componentType": "PlayerController",
                            "className": "Game.PlayerController",
                            "instanceId": "101",
                            "methods": [{"methodName": "Update", "memberId": "node_1"}],
                            "properties": {
                                "speed": 5.5,
                                "playerName": "Hero",
                                "target": "Ref → GameObject: Enemy",
                            },
                        },
                        {
                            "componentType": "Transform",
                            "className": "UnityEngine.Transform",
                            "instanceId": "102",
                            "properties": {},
                        },
                    ],
                    "children": [
                        {
                            "name": "Weapon",
                            "instanceId": "110",
                            "components": [
                                {
                                    "componentType": "Weapon",
                                    "className": "Game.Weapon",
                                    "instanceId": "111",
                                    "properties": {"damage": 10},
                                }
                            ],
                            "children": [],
                        }
                    ],
                },
                {"name": "Enemy", "instanceId": "200", "components": [], "children": []},
            ],
        }
    ],
    "externalClasses": [
        {
            "namespaceName": "Game",
            "className": "PlayerController",
            "type": "class",
            "isLifecycleType": True,
            "methods": [
                {"methodName": "Update", "memberId": "node_1"},
                {"methodName": "Attack", "memberId": "node_2"},
            ],
        },
        {
            "namespaceName": "Game",
            "className": "Weapon",
            "type": "class",
            "methods": [{"methodName": "Fire", "memberId": "node_3"}],
        },
        {
            "namespaceName": "Game",
            "className": "ScoreService",
            "type": "class",
            "methods": [{"methodName": "Add", "memberId": "node_4"}],
        },
        {"namespaceName": "Game", "className": "IDamageable", "type": "interface", "methods": []},
        {"namespaceName": "Game", "className": "Helper", "type": "class", "methods": []},
        {"namespaceName": "Game", "className": "GameState", "type": "enum"},
    ],
    "calls": [
        {"fromId": "node_2", "toId": "global::Game.Weapon.Fire", "callKind": "method", "methodName": "Fire"},
        {"fromId": "node_1", "toId": "Game.Weapon.Fire", "callKind": "method", "methodName": "Fire"},
        {"fromId": "node_1", "toId": "Game.Weapon.Reload", "callKind": "method", "methodName": "Reload"},
        {"fromId": "node_1", "toId": "DOTween.Tweens.DOMove", "callKind": "method", "methodName": "DOMove"},
        {"fromId": "node_1", "toId": "UnityEngine.Debug.Log", "callKind": "method", "methodName": "Log"},
        {
            "fromId": "node_2",
            "toId": "UnityEngine.Object.Instantiate",
            "callKind": "method",
            "methodName": "Instantiate",
        },
        {"fromId": "101", "toId": "200", "callKind": "field_reference", "fieldName": "target"},
    ],
    "structureRelations": [
        {"fromId": "node_1", "toId": "Game.IDamageable", "relationKind": "implements"},
        {"fromId": "node_3", "toId": "Game.GameState", "relationKind": "uses"},
    ],
    "prefabs": [
        {
            "prefabName": "Bullet",
            "prefabPath": "Assets/Prefabs/Bullet.prefab",
            "rootObject": {
                "name": "Bullet",
                "instanceId": "300",
                "components": [
                    {"className": "Game.Bullet", "instanceId": "301", "properties": {"lifetime": 2}}
                ],
            },
        }
    ],
}


class FakeClock:
    """Manually advanced clock for double-click timing."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def sample_records() -> Dict[str, Any]:
    """A small scanned project: one scene, one prefab, a few classes and calls."""
    return copy.deepcopy(SAMPLE_RECORDS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(clock: FakeClock) -> GraphSession:
    """Session with a fake clock and nothing loaded."""
    return GraphSession(clock=clock)


@pytest.fixture
def built_session(session: GraphSession, sample_records: Dict[str, Any]) -> GraphSession:
    """Session with the sample records already built."""
    session.build_graph(sample_records)
    return session


def rects_overlap(a: Tuple[float, float, float, float], b: Tuple[float, float, float, float]) -> bool:
    """True when two (left, top, right, bottom) rectangles share interior area."""
    return a[0] < b[2] and b[0] < a[2] and a[1] < b[3] and b[1] < a[3]
