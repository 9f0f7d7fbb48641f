"""Demo conversation seeded into an empty store on first start."""

from forkchat.models import ConversationTree
from forkchat.trees import engine

_ROOT = (
    "What is StarCraft?",
    "StarCraft is a real-time strategy game released by Blizzard Entertainment in "
    "1998. It features three distinct races, the Terrans, the Protoss and the Zerg, "
    "and is known for its balanced gameplay and its influence on esports.",
)

# (branch name, fork: "root" or a previous branch name, exchanges)
_BRANCHES: list[tuple[str, str, list[tuple[str, str]]]] = [
    ("Game Development", "root", [
        (
            "Tell me about StarCraft's development history",
            "StarCraft was developed between 1995 and 1998. It began as a fantasy "
            "RTS and became science fiction, with three asymmetric races that set it "
            "apart from other strategy games of its time.",
        ),
        (
            "What made StarCraft's design so innovative?",
            "Three completely different races were equally viable. Terran, Protoss "
            "and Zerg had fundamentally different mechanics, which created "
            "rock-paper-scissors dynamics at every level of play.",
        ),
    ]),
    ("Strategies", "root", [
        (
            "What are the main strategic concepts in StarCraft?",
            "Strategy revolves around economy, army and technology: macro management, "
            "micro management, build orders, map control and timing attacks.",
        ),
    ]),
    ("Terran Strategies", "Strategies", [
        (
            "What are effective Terran strategies?",
            "Terran play emphasizes versatility and defense: Marine/Medic pushes, "
            "tank contains and mech builds, backed by bunkers and turrets.",
        ),
        (
            "How do you execute a Marine/Medic timing push?",
            "Hit around the 7 to 9 minute mark with 12-16 marines and a few medics, "
            "before the opponent has splash damage. Keep medics behind the marines "
            "and stim only when engaging.",
        ),
    ]),
    ("Zerg Strategies", "Strategies", [
        (
            "What defines successful Zerg play?",
            "Economic superiority and map control: creep spread, overlord vision, "
            "fast expansions and efficient unit production.",
        ),
    ]),
    ("Competitive Scene", "root", [
        (
            "Tell me about StarCraft's competitive scene",
            "StarCraft launched professional gaming in South Korea, with televised "
            "leagues, sponsored teams and stadium finals.",
        ),
    ]),
]


def build_demo_tree() -> ConversationTree:
    """Build the demo through the engine, so it obeys every tree invariant."""
    tree = engine.create_tree("StarCraft", *_ROOT)
    fork_points = {"root": tree.root_id}

    for name, fork_from, exchanges in _BRANCHES:
        tree, _ = engine.create_branch(tree, fork_points[fork_from], name)
        for user_message, ai_response in exchanges:
            tree, node_id = engine.append_exchange(tree, user_message, ai_response)
            # A later branch forks at this branch's first exchange.
            fork_points.setdefault(name, node_id)

    return engine.select_branch(tree, tree.branches[0].id)
