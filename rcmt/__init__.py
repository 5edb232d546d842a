"""rcmt - AI-assisted git commit message rewriter."""

from importlib import import_module
from typing import TYPE_CHECKING

__version__ = "0.1.0"

# Public API (lazy-exported to avoid import-time side effects)
__all__ = [
    # Config
    "Config", "load_config",
    # Provider
    "LLMClient",
    # Git
    "GitRepo",
    # Scoring and generation
    "QualityScorer", "QualityAssessment", "MessageGenerator",
    # Planning and rewriting
    "CommitRecord", "CommitEnumerator", "RewriteDecision", "RewritePlan",
    "RewritePlanBuilder", "HistoryRewriter", "RewriteOutcome",
    # Safety envelope
    "BackupManager", "ConfirmationGate",
    # Core workflow
    "RewriteWorkflow", "RunSummary",
    # Exceptions
    "RewriteCMTError", "ConfigError", "GitError", "LLMError",
    "ProviderUnavailable", "ProviderError", "RewriteApplicationError",
    "ValidationError",
]


def __getattr__(name: str):
    """Lazy attribute loader so importing rcmt does not pull in the SDKs.

    ``rcmt.msg_filter`` runs once per commit during a rewrite and must stay
    cheap to import.
    """
    mapping = {
        "Config": ("rcmt.config", "Config"),
        "load_config": ("rcmt.config", "load_config"),
        "LLMClient": ("rcmt.llm", "LLMClient"),
        "GitRepo": ("rcmt.git", "GitRepo"),
        "QualityScorer": ("rcmt.quality", "QualityScorer"),
        "QualityAssessment": ("rcmt.quality", "QualityAssessment"),
        "MessageGenerator": ("rcmt.commit", "MessageGenerator"),
        "CommitRecord": ("rcmt.history", "CommitRecord"),
        "CommitEnumerator": ("rcmt.history", "CommitEnumerator"),
        "RewriteDecision": ("rcmt.history", "RewriteDecision"),
        "RewritePlan": ("rcmt.history", "RewritePlan"),
        "RewritePlanBuilder": ("rcmt.history", "RewritePlanBuilder"),
        "HistoryRewriter": ("rcmt.rewrite", "HistoryRewriter"),
        "RewriteOutcome": ("rcmt.rewrite", "RewriteOutcome"),
        "BackupManager": ("rcmt.safety", "BackupManager"),
        "ConfirmationGate": ("rcmt.safety", "ConfirmationGate"),
        "RewriteWorkflow": ("rcmt.core", "RewriteWorkflow"),
        "RunSummary": ("rcmt.core", "RunSummary"),
        "RewriteCMTError": ("rcmt.exceptions", "RewriteCMTError"),
        "ConfigError": ("rcmt.exceptions", "ConfigError"),
        "GitError": ("rcmt.exceptions", "GitError"),
        "LLMError": ("rcmt.exceptions", "LLMError"),
        "ProviderUnavailable": ("rcmt.exceptions", "ProviderUnavailable"),
        "ProviderError": ("rcmt.exceptions", "ProviderError"),
        "RewriteApplicationError": ("rcmt.exceptions", "RewriteApplicationError"),
        "ValidationError": ("rcmt.exceptions", "ValidationError"),
    }
    if name in mapping:
        mod_name, attr = mapping[name]
        mod = import_module(mod_name)
        value = getattr(mod, attr)
        globals()[name] = value  # cache for future access
        return value
    raise AttributeError(f"module 'rcmt' has no attribute {name!r}")


if TYPE_CHECKING:
    # For type checkers and IDEs, provide direct imports
    from .config import Config, load_config
    from .llm import LLMClient
    from .git import GitRepo
    from .quality import QualityScorer, QualityAssessment
    from .commit import MessageGenerator
    from .history import (
        CommitRecord,
        CommitEnumerator,
        RewriteDecision,
        RewritePlan,
        RewritePlanBuilder,
    )
    from .rewrite import HistoryRewriter, RewriteOutcome
    from .safety import BackupManager, ConfirmationGate
    from .core import RewriteWorkflow, RunSummary
    from .exceptions import (
        RewriteCMTError,
        ConfigError,
        GitError,
        LLMError,
        ProviderUnavailable,
        ProviderError,
        RewriteApplicationError,
        ValidationError,
    )
