"""Consent gating: remote verdict, local cache, and the prompt."""

from .client import ConsentClient, RemoteUnavailable
from .gate import ConsentGate, Decision
from .prompt import ConsentPrompt, HeadlessPrompt, PromptAlreadyOpen

__all__ = [
    "ConsentClient",
    "ConsentGate",
    "ConsentPrompt",
    "Decision",
    "HeadlessPrompt",
    "PromptAlreadyOpen",
    "RemoteUnavailable",
]
