"""Exception hierarchy for rcmt."""


class RewriteCMTError(Exception):
    """Base exception for all rcmt errors."""


class ConfigError(RewriteCMTError):
    """Invalid or incomplete configuration (e.g. missing API key)."""


class GitError(RewriteCMTError):
    """Repository state problem or failed git command."""


class RewriteApplicationError(GitError):
    """The history substitution step failed.

    Raised after temporary artefacts have been cleaned up; the backup branch
    (if one was created) is the recovery path.
    """


class LLMError(RewriteCMTError):
    """Text generation provider failure."""


class ProviderUnavailable(LLMError):
    """Provider could not be reached (connection refused, timeout)."""


class ProviderError(LLMError):
    """Provider answered with an error status or unusable content."""


class ValidationError(RewriteCMTError):
    """Invalid user input."""
