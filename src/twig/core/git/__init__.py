from twig.core.git.abc import Git, RebaseStepResult
from twig.core.git.real import RealGit

__all__ = ["Git", "RealGit", "RebaseStepResult"]
