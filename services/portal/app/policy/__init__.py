"""Central authorization: every protected operation asks ``decide`` first."""

from app.policy.rules import RULES, Action, Rule, Scope
from app.policy.evaluator import Actor, Decision, DenyReason, ResourceRef, decide, enforce

__all__ = [
    "Action",
    "Actor",
    "Decision",
    "DenyReason",
    "ResourceRef",
    "Rule",
    "RULES",
    "Scope",
    "decide",
    "enforce",
]
