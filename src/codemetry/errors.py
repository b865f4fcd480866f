"""Exception hierarchy for codemetry."""

from __future__ import annotations


class CodemetryError(Exception):
    """Base class for all codemetry errors."""


class InvalidRepoError(CodemetryError):
    """The analysis target is missing or not inside a git work tree."""

    @classmethod
    def path_not_found(cls, path: str) -> InvalidRepoError:
        return cls(f"Repository path does not exist: {path}")

    @classmethod
    def not_a_git_repo(cls, path: str) -> InvalidRepoError:
        return cls(f"Not a git repository: {path}")


class GitCommandError(CodemetryError):
    """A git invocation exited non-zero."""

    def __init__(self, command: str, stderr: str = ""):
        self.command = command
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"git command failed ({command}){detail}")


class AiEngineError(CodemetryError):
    """An AI engine could not produce a usable summary."""

    @classmethod
    def missing_api_key(cls, engine: str) -> AiEngineError:
        return cls(f"API key not configured for AI engine: {engine}")

    @classmethod
    def request_failed(cls, engine: str, reason: str) -> AiEngineError:
        return cls(f"AI engine '{engine}' request failed: {reason}")

    @classmethod
    def invalid_response(cls, engine: str, reason: str) -> AiEngineError:
        return cls(f"AI engine '{engine}' returned invalid response: {reason}")

    @classmethod
    def unknown_engine(cls, engine: str) -> AiEngineError:
        return cls(f"Unknown AI engine: {engine}")


class ConfigError(CodemetryError):
    """The configuration file could not be read or parsed."""
